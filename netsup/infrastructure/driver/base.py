"""
Driver contract for the OS networking layer.

The core never talks to the OS directly; it only uses the operations of
``NetworkDriver``. Association, IP configuration and name resolution are
the driver's business.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from ...domain.models import DnsResult

InterfaceStatus = dict[str, Any]


class DriverError(RuntimeError):
    """A driver operation failed."""


@runtime_checkable
class NetworkDriver(Protocol):
    async def enumerate_interfaces(self) -> list[str]: ...

    async def interface_status(self, name: str) -> InterfaceStatus: ...

    async def set_regulatory_domain(self, domain: str) -> None: ...

    async def bring_up(self, name: str, options: Mapping[str, Any]) -> ScanSession | None: ...

    async def bring_down(self, name: str) -> None: ...

    async def attach_scan_session(self, name: str) -> ScanSession | None: ...

    async def request_scan(self, name: str) -> None: ...

    async def poll_scan_results(self, name: str) -> str: ...

    async def set_ntp_servers(self, servers: list[str]) -> None: ...

    async def resolve_hostname(self, hostname: str) -> DnsResult: ...

    async def clear_resolver_cache(self) -> None: ...


class ScanSession:
    """Handle on the live scan-capable process of one interface."""

    def __init__(self, driver: NetworkDriver, interface: str) -> None:
        self.driver = driver
        self.interface = interface

    async def request_scan(self) -> None:
        await self.driver.request_scan(self.interface)

    async def poll_scan_results(self) -> str:
        return await self.driver.poll_scan_results(self.interface)

    def __repr__(self) -> str:
        return f"ScanSession(interface={self.interface!r})"
