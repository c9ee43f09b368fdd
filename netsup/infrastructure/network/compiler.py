"""
Configuration Compiler
======================

Turns persisted interface records into driver-ready configurations.

Compiling a wireless record applies its regulatory domain through the
driver when one is given; apart from that the compiler is a pure function
of the record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ...domain.models import (
    CompiledConfig,
    InterfaceType,
    Ipv4Method,
    NetworkInterfaceRecord,
    SecurityMode,
)
from ..driver.base import DriverError, NetworkDriver

logger = logging.getLogger(__name__)

STATIC_FIELDS = ("ipv4_address", "ipv4_gateway", "ipv4_subnet_mask")


class ConfigurationError(ValueError):
    """A record cannot be turned into a driver configuration."""

    def __init__(self, interface: str, message: str) -> None:
        super().__init__(f"{interface}: {message}")
        self.interface = interface


def ip_settings(record: NetworkInterfaceRecord) -> dict[str, Any]:
    if record.ipv4_method == Ipv4Method.STATIC.value:
        missing = [f for f in STATIC_FIELDS if not getattr(record, f)]
        if missing:
            raise ConfigurationError(record.name, f"static ipv4 requires {', '.join(missing)}")
        opts: dict[str, Any] = {
            "ipv4_address_method": "static",
            "ipv4_address": record.ipv4_address,
            "ipv4_gateway": record.ipv4_gateway,
            "ipv4_subnet_mask": record.ipv4_subnet_mask,
        }
    elif record.ipv4_method == Ipv4Method.DHCP.value:
        opts = {}
    else:
        raise ConfigurationError(record.name, f"unsupported ipv4 method: {record.ipv4_method}")

    # Stored as `name_servers` but the driver option is `nameservers`.
    # Existing databases hold the old name, so neither side can be renamed
    # without a migration.
    if record.name_servers:
        opts["nameservers"] = record.name_servers.split(" ")
    if record.domain:
        opts["domain"] = record.domain
    return opts


def wireless_options(record: NetworkInterfaceRecord) -> dict[str, Any]:
    security = record.security
    if security == SecurityMode.WPA_EAP.value:
        return {
            "ssid": record.ssid,
            "scan_ssid": 1,
            "key_mgmt": "WPA-EAP",
            "pairwise": "CCMP TKIP",
            "group": "CCMP TKIP",
            "eap": "PEAP",
            "identity": record.identity,
            "password": record.password,
            "phase1": "peapver=auto",
            "phase2": "MSCHAPV2",
        }
    if security == SecurityMode.WPA_PSK.value:
        return {"ssid": record.ssid, "psk": record.psk, "key_mgmt": "WPA-PSK", "scan_ssid": 1}
    if security == SecurityMode.NONE.value:
        return {"ssid": record.ssid, "scan_ssid": 1}
    raise ConfigurationError(record.name, f"unsupported wireless security type: {security}")


async def to_driver_config(
    record: NetworkInterfaceRecord,
    driver: NetworkDriver | None = None,
) -> CompiledConfig:
    """Compile one record, raising ``ConfigurationError`` if it is not usable."""
    if record.type == InterfaceType.WIRED.value:
        return CompiledConfig(record.name, ip_settings(record))

    if record.type != InterfaceType.WIRELESS.value:
        raise ConfigurationError(record.name, f"unsupported interface type: {record.type}")

    logger.debug("wireless network config: ssid: %s", record.ssid)
    opts = wireless_options(record)
    opts.update(ip_settings(record))
    if driver is not None and record.regulatory_domain:
        try:
            await driver.set_regulatory_domain(record.regulatory_domain)
        except DriverError as exc:
            raise ConfigurationError(
                record.name, f"cannot set regulatory domain {record.regulatory_domain}: {exc}"
            ) from exc
    return CompiledConfig(record.name, opts)


async def compile_all(
    records: Iterable[NetworkInterfaceRecord],
    driver: NetworkDriver | None = None,
) -> tuple[list[CompiledConfig], dict[str, ConfigurationError]]:
    """
    Compile every record independently.

    Returns the unique compiled configs in record order, and the errors of
    records that failed, keyed by interface name.
    """
    compiled: list[CompiledConfig] = []
    errors: dict[str, ConfigurationError] = {}
    for record in records:
        try:
            config = await to_driver_config(record, driver)
        except ConfigurationError as exc:
            logger.error("Not bringing up %s: %s", record.name, exc)
            errors[record.name] = exc
            continue
        if config not in compiled:
            compiled.append(config)
    return compiled, errors
