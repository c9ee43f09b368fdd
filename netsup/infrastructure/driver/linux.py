"""
Linux Network Driver
====================

Implements the driver contract on top of standard Linux tooling:

- psutil for interface enumeration and status
- wpa_supplicant / wpa_cli for association and scanning
- iw for the regulatory domain
- ip / dhclient for addressing
- resolvectl for DNS settings and cache flushing
- systemd-timesyncd drop-ins for NTP servers

Usage:
    driver = LinuxNetworkDriver()
    session = await driver.bring_up("wlan0", {"ssid": "Farm", "psk": "secret"})
    await session.request_scan()
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import psutil

from ...domain.models import DnsResult
from .base import DriverError, InterfaceStatus, ScanSession

logger = logging.getLogger(__name__)

# wpa_supplicant network block keys, in the order they are written
WPA_NETWORK_KEYS = (
    "ssid",
    "scan_ssid",
    "key_mgmt",
    "psk",
    "pairwise",
    "group",
    "eap",
    "identity",
    "password",
    "phase1",
    "phase2",
)
QUOTED_KEYS = frozenset({"ssid", "psk", "identity", "password", "phase1", "phase2"})

CTRL_INTERFACE_DIR = Path("/run/wpa_supplicant")


def render_wpa_supplicant_conf(options: Mapping[str, Any], ctrl_dir: Path = CTRL_INTERFACE_DIR) -> str:
    """Render a wpa_supplicant config holding a single network block."""
    lines = [f"ctrl_interface=DIR={ctrl_dir}", "update_config=0", "", "network={"]
    if "key_mgmt" not in options:
        lines.append("\tkey_mgmt=NONE")
    for key in WPA_NETWORK_KEYS:
        value = options.get(key)
        if value is None:
            continue
        if key in QUOTED_KEYS:
            escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'\t{key}="{escaped}"')
        else:
            lines.append(f"\t{key}={value}")
    lines.append("}")
    return "\n".join(lines) + "\n"


def _prefix_length(netmask: str) -> int:
    try:
        return ipaddress.IPv4Network(f"0.0.0.0/{netmask}").prefixlen
    except ValueError as exc:
        raise DriverError(f"invalid subnet mask: {netmask}") from exc


async def _reap(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


class LinuxNetworkDriver:
    """Driver backed by psutil and the usual Linux networking binaries."""

    def __init__(
        self,
        runtime_dir: Path = Path("/run/netsup"),
        timesyncd_dropin: Path = Path("/etc/systemd/timesyncd.conf.d/netsup.conf"),
        command_timeout: float = 15.0,
    ) -> None:
        self.runtime_dir = runtime_dir
        self.timesyncd_dropin = timesyncd_dropin
        self.command_timeout = command_timeout

    async def _run(self, *cmd: str, check: bool = True) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise DriverError(f"{cmd[0]} not found") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.command_timeout)
        except TimeoutError as exc:
            await _reap(proc)
            raise DriverError(f"{cmd[0]} timed out after {self.command_timeout:.1f}s") from exc
        except asyncio.CancelledError:
            await asyncio.shield(_reap(proc))
            raise

        if check and proc.returncode != 0:
            raise DriverError(f"{' '.join(cmd)} failed: {stderr.decode(errors='ignore').strip()}")
        return stdout.decode("utf-8", errors="ignore")

    async def enumerate_interfaces(self) -> list[str]:
        return list(psutil.net_if_stats().keys())

    async def interface_status(self, name: str) -> InterfaceStatus:
        stats = psutil.net_if_stats().get(name)
        if stats is None:
            raise DriverError(f"no such interface: {name}")

        status: InterfaceStatus = {
            "is_up": stats.isup,
            "mtu": stats.mtu,
            "speed": stats.speed,
            "mac_address": None,
            "ipv4_address": None,
            "ipv4_subnet_mask": None,
        }
        for addr in psutil.net_if_addrs().get(name, []):
            if addr.family == socket.AF_INET:
                status["ipv4_address"] = addr.address
                status["ipv4_subnet_mask"] = addr.netmask
            elif addr.family == psutil.AF_LINK:
                status["mac_address"] = addr.address
        return status

    async def set_regulatory_domain(self, domain: str) -> None:
        await self._run("iw", "reg", "set", domain)

    async def bring_up(self, name: str, options: Mapping[str, Any]) -> ScanSession | None:
        await self._run("ip", "link", "set", name, "up")

        session = None
        if "ssid" in options:
            await self._start_supplicant(name, options)
            session = ScanSession(self, name)

        if options.get("ipv4_address_method") == "static":
            prefix = _prefix_length(str(options["ipv4_subnet_mask"]))
            await self._run("ip", "addr", "flush", "dev", name)
            await self._run("ip", "addr", "add", f"{options['ipv4_address']}/{prefix}", "dev", name)
            await self._run("ip", "route", "replace", "default", "via", str(options["ipv4_gateway"]), "dev", name)
        else:
            await self._run("dhclient", "-nw", name)

        if options.get("nameservers"):
            await self._run("resolvectl", "dns", name, *options["nameservers"])
        if options.get("domain"):
            await self._run("resolvectl", "domain", name, str(options["domain"]))

        logger.info("Interface %s up", name)
        return session

    async def _start_supplicant(self, name: str, options: Mapping[str, Any]) -> None:
        self.runtime_dir.mkdir(parents=True, exist_ok=True)
        conf = self.runtime_dir / f"wpa_supplicant-{name}.conf"
        conf.write_text(render_wpa_supplicant_conf(options), encoding="utf-8")
        conf.chmod(0o600)
        # A stale supplicant on the interface would hold the control socket
        await self._run("wpa_cli", "-i", name, "terminate", check=False)
        await self._run("wpa_supplicant", "-B", "-i", name, "-c", str(conf))

    async def bring_down(self, name: str) -> None:
        await self._run("wpa_cli", "-i", name, "terminate", check=False)
        await self._run("dhclient", "-r", name, check=False)
        await self._run("ip", "addr", "flush", "dev", name, check=False)
        conf = self.runtime_dir / f"wpa_supplicant-{name}.conf"
        if conf.exists():
            conf.unlink()
        logger.info("Interface %s down", name)

    async def attach_scan_session(self, name: str) -> ScanSession | None:
        """Session for an already running supplicant on ``name``, if it answers."""
        try:
            reply = await self._run("wpa_cli", "-i", name, "ping", check=False)
        except DriverError as exc:
            logger.debug("No supplicant on %s: %s", name, exc)
            return None
        if "PONG" not in reply:
            logger.debug("No supplicant on %s", name)
            return None
        return ScanSession(self, name)

    async def request_scan(self, name: str) -> None:
        await self._run("wpa_cli", "-i", name, "scan")

    async def poll_scan_results(self, name: str) -> str:
        return await self._run("wpa_cli", "-i", name, "scan_results")

    async def set_ntp_servers(self, servers: list[str]) -> None:
        servers = [s for s in servers if s]
        if not servers:
            return
        self.timesyncd_dropin.parent.mkdir(parents=True, exist_ok=True)
        self.timesyncd_dropin.write_text("[Time]\nNTP=" + " ".join(servers) + "\n", encoding="utf-8")
        await self._run("systemctl", "try-restart", "systemd-timesyncd", check=False)

    async def resolve_hostname(self, hostname: str) -> DnsResult:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(hostname, None, family=socket.AF_INET, type=socket.SOCK_STREAM)
        except socket.gaierror as exc:
            return DnsResult.failure(hostname, str(exc))

        addresses: list[str] = []
        for *_, sockaddr in infos:
            if sockaddr[0] not in addresses:
                addresses.append(sockaddr[0])
        return DnsResult(hostname=hostname, ok=True, addresses=addresses)

    async def clear_resolver_cache(self) -> None:
        try:
            await self._run("resolvectl", "flush-caches")
        except DriverError as exc:
            # Hosts without systemd-resolved have no local cache to clear
            logger.debug("Resolver cache not flushed: %s", exc)
