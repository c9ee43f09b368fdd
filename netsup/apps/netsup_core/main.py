from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable, Mapping
from typing import Protocol

from rich.console import Console

from ...config import NetsupConfig
from ...infrastructure.driver import LinuxNetworkDriver, MockNetworkDriver, NetworkDriver
from ...infrastructure.network import NetworkSupervisor, ScanEngine
from ...infrastructure.storage import ConfigStore, YamlConfigStore
from ...tools.supervisor import ChildSpec, RestartPolicy, TaskSupervisor

console = Console()
logger = logging.getLogger(__name__)

# Start order of the collaborators composed next to networking
COLLABORATORS = ("storage", "ssh", "bot_state", "serial", "sync", "scheduler", "rpc")
NETWORK = "network"


class Collaborator(Protocol):
    async def run(self) -> None: ...


def build_root_specs(
    collaborators: Mapping[str, Collaborator],
    network_factory: Callable[[], NetworkSupervisor],
) -> list[ChildSpec]:
    """Children of the root tree: known collaborators in order, then networking. All permanent."""
    unknown = set(collaborators) - set(COLLABORATORS)
    if unknown:
        raise ValueError(f"unknown collaborators: {', '.join(sorted(unknown))}")

    specs = [
        ChildSpec(name=name, start=collaborators[name].run, restart=RestartPolicy.PERMANENT)
        for name in COLLABORATORS
        if name in collaborators
    ]
    specs.append(ChildSpec(name=NETWORK, start=lambda: network_factory().run(), restart=RestartPolicy.PERMANENT))
    return specs


def build_root_tree() -> TaskSupervisor:
    # Default restart intensity of an OTP supervisor
    return TaskSupervisor("root", max_restarts=3, max_seconds=5.0)


async def run_root(
    cfg: NetsupConfig,
    driver: NetworkDriver,
    store: ConfigStore,
    scan_engine: ScanEngine | None = None,
    collaborators: Mapping[str, Collaborator] | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    scan_engine = scan_engine or ScanEngine(
        poll_interval=cfg.scan.poll_interval_secs,
        timeout=cfg.scan.timeout_secs,
    )

    def network_factory() -> NetworkSupervisor:
        return NetworkSupervisor(driver, store, scan_engine, cfg)

    root = build_root_tree()
    await root.start(build_root_specs(collaborators or {}, network_factory))
    waiters = [asyncio.ensure_future(root.wait())]
    if stop_event is not None:
        waiters.append(asyncio.ensure_future(stop_event.wait()))
    try:
        done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        for fut in done:
            fut.result()
    finally:
        for fut in waiters:
            fut.cancel()
        await root.stop()


def service_loop(cfg: NetsupConfig, dry_run: bool = False) -> None:
    """Run the process tree until SIGINT/SIGTERM."""
    driver: NetworkDriver = MockNetworkDriver() if dry_run else LinuxNetworkDriver()
    store = YamlConfigStore(cfg.storage.path)
    if dry_run:
        console.log("[dry-run] using in-memory network driver")

    async def _main() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)
        await run_root(cfg, driver, store, stop_event=stop_event)

    asyncio.run(_main())
