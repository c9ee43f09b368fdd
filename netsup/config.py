from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


class LoggingConfig(BaseModel):
    level: str = Field("INFO")
    format: str = Field("%(asctime)s | %(name)s | %(levelname)s | %(message)s")
    datefmt: str = Field("%Y-%m-%d %H:%M:%S")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level: {value}")
        return value


class InterfacesConfig(BaseModel):
    max_attempts: int = Field(5, ge=0, le=100)
    retry_delay_secs: float = Field(0.1, ge=0.0, le=10.0)
    ignored: list[str] = Field(default_factory=lambda: ["lo", "usb0", "sit0"])


class ScanConfig(BaseModel):
    poll_interval_secs: float = Field(0.5, gt=0.0, le=10.0)
    # None waits until the driver reports results, however long that takes
    timeout_secs: float | None = Field(30.0, gt=0.0)


class DnsConfig(BaseModel):
    default_dns_name: str = Field("my.farm.bot")

    @field_validator("default_dns_name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not value or any(c.isspace() for c in value):
            raise ValueError("default_dns_name must be a valid hostname")
        return value


class SupervisorConfig(BaseModel):
    """Restart intensity for the networking subtree."""
    max_restarts: int = Field(20, ge=0)
    max_seconds: float = Field(1.0, gt=0.0)
    not_found_timeout_secs: float = Field(600.0, gt=0.0)
    status_interval_secs: float = Field(5.0, gt=0.0)


class StorageConfig(BaseModel):
    path: Path = Field(Path("configs/network.yml"))

    @field_validator("path")
    @classmethod
    def _expand_path(cls, value: Path) -> Path:
        return value.expanduser()


class NetsupConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    interfaces: InterfacesConfig = Field(default_factory=InterfacesConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    dns: DnsConfig = Field(default_factory=DnsConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


def load_config(path: Path) -> NetsupConfig:
    with Path(path).expanduser().open("r", encoding="utf-8") as fp:
        raw: dict[str, Any] = yaml.safe_load(fp) or {}
    try:
        return NetsupConfig.model_validate(raw)
    except ValidationError as exc:  # pragma: no cover - formatting
        raise ValueError(str(exc)) from exc


def resolve_config_path(cli_path: Path | None) -> Path:
    """Resolve config path by priority: CLI, env, /etc/netsup, repo configs."""
    candidates: list[Path] = []
    if cli_path:
        p = Path(cli_path).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    env = os.environ.get("NETSUP_CONFIG")
    if env:
        p = Path(env).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    for p in [Path("/etc/netsup/netsup.yml"), Path("configs/netsup.yml")]:
        if p.exists():
            return p.resolve()
        candidates.append(p)
    # Fall back to the first candidate so a missing file surfaces as an error
    return candidates[0] if candidates else Path("configs/netsup.yml").resolve()
