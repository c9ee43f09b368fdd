"""In-memory driver for tests and dry runs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...domain.models import DnsResult
from .base import DriverError, InterfaceStatus, ScanSession

SAMPLE_SCAN_RESULTS = (
    "bssid / frequency / signal level / flags / ssid\n"
    "aa:bb:cc:dd:ee:01\t2412\t-45\t[WPA2-PSK-CCMP][ESS]\tFarmNet\n"
    "aa:bb:cc:dd:ee:02\t2437\t-60\t[WPA2-EAP-CCMP][ESS]\tCampus\n"
    "aa:bb:cc:dd:ee:03\t2462\t-70\t[ESS]\n"
)


class MockNetworkDriver:
    """
    Fake driver that records every call.

    ``enumerations`` is consumed one entry per ``enumerate_interfaces`` call;
    the last entry repeats once the list is exhausted. ``scan_results`` works
    the same way for ``poll_scan_results``.
    """

    def __init__(
        self,
        enumerations: list[list[str]] | None = None,
        statuses: dict[str, InterfaceStatus] | None = None,
        scan_results: list[str] | None = None,
        hosts: dict[str, list[str]] | None = None,
        fail_bring_up: set[str] | None = None,
        scan_capable: set[str] | None = None,
    ) -> None:
        self.enumerations = list(enumerations or [["lo", "eth0", "wlan0"]])
        self.statuses = statuses or {}
        self.scan_results = list(scan_results or [SAMPLE_SCAN_RESULTS])
        self.hosts = hosts or {}
        self.fail_bring_up = fail_bring_up or set()
        # None: every interface has a live supplicant
        self.scan_capable = scan_capable
        self.calls: list[tuple[str, Any]] = []
        self.up: dict[str, Mapping[str, Any]] = {}
        self.regulatory_domain: str | None = None
        self.ntp_servers: list[str] = []
        self.cache_clears = 0

    def calls_to(self, operation: str) -> list[Any]:
        return [args for op, args in self.calls if op == operation]

    async def enumerate_interfaces(self) -> list[str]:
        self.calls.append(("enumerate_interfaces", None))
        if len(self.enumerations) > 1:
            return list(self.enumerations.pop(0))
        return list(self.enumerations[0])

    async def interface_status(self, name: str) -> InterfaceStatus:
        self.calls.append(("interface_status", name))
        return dict(self.statuses.get(name, {"is_up": name in self.up}))

    async def set_regulatory_domain(self, domain: str) -> None:
        self.calls.append(("set_regulatory_domain", domain))
        self.regulatory_domain = domain

    async def bring_up(self, name: str, options: Mapping[str, Any]) -> ScanSession | None:
        self.calls.append(("bring_up", (name, dict(options))))
        if name in self.fail_bring_up:
            raise DriverError(f"cannot bring up {name}")
        self.up[name] = options
        return ScanSession(self, name) if "ssid" in options else None

    async def bring_down(self, name: str) -> None:
        self.calls.append(("bring_down", name))
        self.up.pop(name, None)

    async def attach_scan_session(self, name: str) -> ScanSession | None:
        self.calls.append(("attach_scan_session", name))
        if self.scan_capable is not None and name not in self.scan_capable:
            return None
        return ScanSession(self, name)

    async def request_scan(self, name: str) -> None:
        self.calls.append(("request_scan", name))

    async def poll_scan_results(self, name: str) -> str:
        self.calls.append(("poll_scan_results", name))
        if len(self.scan_results) > 1:
            return self.scan_results.pop(0)
        return self.scan_results[0]

    async def set_ntp_servers(self, servers: list[str]) -> None:
        self.calls.append(("set_ntp_servers", list(servers)))
        self.ntp_servers = list(servers)

    async def resolve_hostname(self, hostname: str) -> DnsResult:
        self.calls.append(("resolve_hostname", hostname))
        if hostname in self.hosts:
            return DnsResult(hostname=hostname, ok=True, addresses=list(self.hosts[hostname]))
        return DnsResult.failure(hostname, "Name or service not known")

    async def clear_resolver_cache(self) -> None:
        self.calls.append(("clear_resolver_cache", None))
        self.cache_clears += 1
