"""netsup Domain Models - persisted records and values passed between components."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InterfaceType(str, Enum):
    """Physical link type of an interface record."""

    WIRED = "wired"
    WIRELESS = "wireless"


class SecurityMode(str, Enum):
    """Wireless security modes the compiler knows how to build."""

    NONE = "NONE"
    WPA_PSK = "WPA-PSK"
    WPA_EAP = "WPA-EAP"


class Ipv4Method(str, Enum):
    DHCP = "dhcp"
    STATIC = "static"


class NetworkInterfaceRecord(BaseModel):
    """Persisted description of one interface's desired configuration.

    ``type``, ``security`` and ``ipv4_method`` are kept as plain strings so
    that values this version does not understand are still loaded and can be
    rejected by the compiler for that record alone.
    """

    # Unquoted YAML scalars such as `psk: 12345678` load as numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    type: str = Field(InterfaceType.WIRED.value)
    security: str | None = None
    ssid: str | None = None
    psk: str | None = None
    identity: str | None = None
    password: str | None = None
    regulatory_domain: str | None = None
    ipv4_method: str = Field(Ipv4Method.DHCP.value)
    ipv4_address: str | None = None
    ipv4_gateway: str | None = None
    ipv4_subnet_mask: str | None = None
    # Space separated; the stored field name differs from the driver option
    # name ("nameservers") and both must stay as they are.
    name_servers: str | None = None
    domain: str | None = None

    @property
    def is_wireless(self) -> bool:
        return self.type == InterfaceType.WIRELESS.value


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return tuple((k, _freeze(value[k])) for k in sorted(value))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True, eq=False)
class CompiledConfig:
    """A concrete (interface name, driver options) pair.

    Instances are immutable and compare/hash by value, so identical pairs
    collapse when deduplicated and can be used as supervisor child ids.
    """

    interface_name: str
    driver_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "driver_options", MappingProxyType(dict(self.driver_options)))

    @property
    def key(self) -> tuple[str, Any]:
        return (self.interface_name, _freeze(self.driver_options))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompiledConfig):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def to_dict(self) -> dict[str, Any]:
        return {"interface": self.interface_name, "options": dict(self.driver_options)}


@dataclass(frozen=True)
class ScanEntry:
    """One decoded visible-network record from a wireless scan."""

    bssid: str
    frequency: int
    flags: str
    level: int
    ssid: str | None = None
    security: str = SecurityMode.NONE.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "bssid": self.bssid,
            "frequency": self.frequency,
            "flags": self.flags,
            "level": self.level,
            "ssid": self.ssid,
            "security": self.security,
        }


@dataclass
class DnsResult:
    """Outcome of a hostname resolution."""

    hostname: str
    ok: bool
    addresses: list[str] = field(default_factory=list)
    aliases: list[str] = field(default_factory=list)
    error: str | None = None
    synthetic: bool = False

    @classmethod
    def failure(cls, hostname: str, error: str) -> DnsResult:
        return cls(hostname=hostname, ok=False, error=error)
