from __future__ import annotations

import asyncio
import importlib.metadata as md
import json
import logging
from pathlib import Path

import typer
from rich.console import Console

from .apps.netsup_core.main import service_loop
from .config import NetsupConfig, load_config, resolve_config_path
from .domain.models import ScanEntry
from .infrastructure.driver import DriverError, LinuxNetworkDriver
from .infrastructure.network import (
    DnsProbe,
    InterfaceEnumerator,
    ScanEngine,
    ScanTimeoutError,
    compile_all,
)
from .infrastructure.storage import YamlConfigStore

# Typer application: tests import this
app = typer.Typer(no_args_is_help=True, add_completion=False, help="netsup CLI")
console = Console()


def _load(config: Path) -> NetsupConfig:
    resolved = resolve_config_path(config)
    if not resolved.exists():
        return NetsupConfig()
    return load_config(resolved)


def _setup_logging(cfg: NetsupConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level),
        format=cfg.logging.format,
        datefmt=cfg.logging.datefmt,
    )


def _store(cfg: NetsupConfig, store: Path | None) -> YamlConfigStore:
    return YamlConfigStore(store or cfg.storage.path)


@app.command()
def version() -> None:
    """Print version information."""
    try:
        console.print(f"netsup {md.version('netsup')}")
    except md.PackageNotFoundError:
        from . import __version__

        console.print(f"netsup {__version__}")
    raise typer.Exit(code=0)


@app.command(name="config-validate")
def config_validate(path: Path = typer.Argument(Path("configs/netsup.yml"))) -> None:
    """Validate and show resolved configuration."""
    resolved = resolve_config_path(path)
    console.print(f"Using config: {resolved}")
    try:
        cfg = load_config(resolved)
    except (OSError, ValueError) as exc:
        console.print(f"Config validation failed: {exc}")
        raise typer.Exit(code=1) from exc
    console.print("Config OK.")
    console.print(f"- store: {cfg.storage.path}")
    console.print(f"- scan timeout: {cfg.scan.timeout_secs}")
    console.print(f"- restarts: {cfg.supervisor.max_restarts} per {cfg.supervisor.max_seconds}s")


@app.command()
def interfaces(
    config: Path = typer.Option(Path("configs/netsup.yml"), "--config", "-c"),
    attempts: int | None = typer.Option(None, "--attempts"),
) -> None:
    """List usable network interfaces and their status."""
    cfg = _load(config)
    _setup_logging(cfg)
    enumerator = InterfaceEnumerator(
        LinuxNetworkDriver(),
        max_attempts=cfg.interfaces.max_attempts,
        retry_delay=cfg.interfaces.retry_delay_secs,
        ignored=cfg.interfaces.ignored,
    )
    found = asyncio.run(enumerator.list_interfaces(attempts))
    if not found:
        console.print("No interfaces found.")
        return
    for name, status in found.items():
        console.print(f"{name}: {json.dumps(status, default=str)}", markup=False, soft_wrap=True)


@app.command(name="compile")
def compile_(
    config: Path = typer.Option(Path("configs/netsup.yml"), "--config", "-c"),
    store: Path | None = typer.Option(None, "--store"),
) -> None:
    """Show the driver configuration compiled from every stored interface record."""
    cfg = _load(config)
    try:
        records = _store(cfg, store).get_all_network_interface_records()
    except ValueError as exc:
        console.print(f"Invalid store: {exc}")
        raise typer.Exit(code=1) from exc

    compiled, errors = asyncio.run(compile_all(records))
    for item in compiled:
        console.print(json.dumps(item.to_dict(), sort_keys=True), markup=False, soft_wrap=True)
    for exc in errors.values():
        console.print(f"[red]error[/red] {exc}")
    if errors:
        raise typer.Exit(code=1)


async def _scan_engine(cfg: NetsupConfig, interface: str) -> ScanEngine:
    engine = ScanEngine(poll_interval=cfg.scan.poll_interval_secs, timeout=cfg.scan.timeout_secs)
    # Only a live supplicant makes the interface scan-capable
    session = await LinuxNetworkDriver().attach_scan_session(interface)
    if session is not None:
        engine.register(interface, session)
    return engine


async def _scan(cfg: NetsupConfig, interface: str) -> list[ScanEntry]:
    engine = await _scan_engine(cfg, interface)
    return await engine.scan(interface)


async def _level(cfg: NetsupConfig, interface: str, ssid: str) -> int | None:
    engine = await _scan_engine(cfg, interface)
    return await engine.get_level(interface, ssid)


@app.command()
def scan(
    interface: str = typer.Argument(...),
    config: Path = typer.Option(Path("configs/netsup.yml"), "--config", "-c"),
) -> None:
    """Scan for wireless networks on INTERFACE."""
    cfg = _load(config)
    _setup_logging(cfg)
    try:
        entries = asyncio.run(_scan(cfg, interface))
    except (ScanTimeoutError, DriverError) as exc:
        console.print(f"Scan failed: {exc}")
        raise typer.Exit(code=1) from exc
    if not entries:
        console.print("No networks found.")
        return
    for entry in entries:
        console.print(f"{entry.level:>4} {entry.frequency:>5} {entry.security:<8} {entry.bssid} {entry.ssid}", markup=False)


@app.command()
def level(
    interface: str = typer.Argument(...),
    ssid: str = typer.Argument(...),
    config: Path = typer.Option(Path("configs/netsup.yml"), "--config", "-c"),
) -> None:
    """Print the signal level of SSID as seen from INTERFACE."""
    cfg = _load(config)
    _setup_logging(cfg)
    try:
        found = asyncio.run(_level(cfg, interface, ssid))
    except (ScanTimeoutError, DriverError) as exc:
        console.print(f"Scan failed: {exc}")
        raise typer.Exit(code=1) from exc
    if found is None:
        console.print(f"{ssid} not found")
        raise typer.Exit(code=1)
    console.print(str(found))


@app.command()
def dns(
    hostname: str | None = typer.Argument(None),
    config: Path = typer.Option(Path("configs/netsup.yml"), "--config", "-c"),
    store: Path | None = typer.Option(None, "--store"),
) -> None:
    """Check that HOSTNAME (default: the API server host) resolves."""
    cfg = _load(config)
    _setup_logging(cfg)
    probe = DnsProbe(LinuxNetworkDriver(), _store(cfg, store), cfg.dns.default_dns_name)
    result = asyncio.run(probe.test_dns(hostname))
    if not result.ok:
        console.print(f"{result.hostname}: {result.error}")
        raise typer.Exit(code=1)
    console.print(f"{result.hostname}: {' '.join(result.addresses)}")


@app.command()
def run(
    config: Path = typer.Option(Path("configs/netsup.yml"), "--config", "-c"),
    dry_run: bool = typer.Option(False, "--dry-run"),
) -> None:
    """Start the networking process tree using CONFIG."""
    resolved = resolve_config_path(config)
    console.print(f"Using config: {resolved}")
    cfg = load_config(resolved)
    _setup_logging(cfg)
    console.print("Starting netsup ...")
    service_loop(cfg, dry_run=dry_run)
    console.print("netsup stopped.")


cli = typer.main.get_command(app)


def launch() -> None:
    """Entry point when executed as a module/script."""
    cli()  # use the prepared Click command
