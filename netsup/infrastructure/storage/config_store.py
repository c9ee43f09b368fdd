"""
Read-only access to persisted network configuration.

The store layout is a YAML document:

    authorization:
      server: https://my.farm.bot
    settings:
      default_ntp_server_1: 0.pool.ntp.org
      default_ntp_server_2: 1.pool.ntp.org
      default_dns_name: my.farm.bot
    network_interfaces:
      - name: wlan0
        type: wireless
        security: WPA-PSK
        ssid: FarmNet
        psk: secret
        ipv4_method: dhcp
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import ValidationError

from ...domain.models import NetworkInterfaceRecord

logger = logging.getLogger(__name__)

_KINDS = {
    "string": str,
    "bool": bool,
    "float": float,
    "int": int,
}


@runtime_checkable
class ConfigStore(Protocol):
    def get_all_network_interface_records(self) -> list[NetworkInterfaceRecord]: ...

    def get_config_value(self, kind: str, section: str, key: str) -> Any | None: ...


def _coerce(kind: str, value: Any) -> Any | None:
    if value is None:
        return None
    try:
        cast = _KINDS[kind]
    except KeyError:
        raise ValueError(f"unknown config value kind: {kind}") from None
    if isinstance(value, cast):
        return value
    if cast is bool:
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    return cast(value)


class MemoryConfigStore:
    """Store backed by plain dicts."""

    def __init__(
        self,
        records: list[NetworkInterfaceRecord | dict[str, Any]] | None = None,
        values: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.records = [
            r if isinstance(r, NetworkInterfaceRecord) else NetworkInterfaceRecord.model_validate(r)
            for r in records or []
        ]
        self.values = values or {}

    def get_all_network_interface_records(self) -> list[NetworkInterfaceRecord]:
        return list(self.records)

    def get_config_value(self, kind: str, section: str, key: str) -> Any | None:
        return _coerce(kind, self.values.get(section, {}).get(key))


class YamlConfigStore:
    """Store backed by a YAML file, re-read on every access."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.warning("Config store %s does not exist", self.path)
            return {}
        with self.path.open("r", encoding="utf-8") as fp:
            raw = yaml.safe_load(fp) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{self.path}: top level must be a mapping")
        return raw

    def get_all_network_interface_records(self) -> list[NetworkInterfaceRecord]:
        """Valid records in file order; invalid ones are logged and skipped."""
        raw = self._load().get("network_interfaces") or []
        if not isinstance(raw, list):
            raise ValueError(f"{self.path}: network_interfaces must be a list")
        records: list[NetworkInterfaceRecord] = []
        for index, item in enumerate(raw):
            try:
                records.append(NetworkInterfaceRecord.model_validate(item))
            except ValidationError as exc:
                name = item.get("name") if isinstance(item, dict) else None
                logger.error(
                    "Skipping invalid network interface record %s in %s: %s",
                    name or f"#{index}",
                    self.path,
                    exc,
                )
        return records

    def get_config_value(self, kind: str, section: str, key: str) -> Any | None:
        section_values = self._load().get(section) or {}
        return _coerce(kind, section_values.get(key))
