"""
Dynamic Interface Supervisor
============================

Supervises one ``InterfaceWorker`` per compiled interface configuration,
preceded by the permanent ``NotFoundTimer`` sentinel.

Workers are transient: a crashed worker is restarted, one that was stopped
on purpose is not. Exceeding the restart budget (20 restarts per second by
default) stops the whole subtree and propagates out of ``run()``.

Usage:
    supervisor = NetworkSupervisor(driver, store, scan_engine, cfg)
    await supervisor.start()
    ...
    await supervisor.reinitialize()   # after the stored records changed
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from ...config import NetsupConfig
from ...domain.models import CompiledConfig, NetworkInterfaceRecord
from ...tools.supervisor import ChildSpec, RestartPolicy, TaskSupervisor
from ..driver.base import NetworkDriver
from ..storage.config_store import ConfigStore
from .compiler import ConfigurationError, compile_all
from .interfaces import InterfaceEnumerator
from .manager import InterfaceWorker
from .not_found_timer import NotFoundTimer
from .scanner import ScanEngine

logger = logging.getLogger(__name__)

NOT_FOUND_TIMER = "not-found-timer"


class NetworkSupervisor:
    """Owns the networking subtree and rebuilds it when configuration changes."""

    def __init__(
        self,
        driver: NetworkDriver,
        store: ConfigStore,
        scan_engine: ScanEngine,
        config: NetsupConfig | None = None,
        enumerator: InterfaceEnumerator | None = None,
    ) -> None:
        self.driver = driver
        self.store = store
        self.scan_engine = scan_engine
        self.config = config or NetsupConfig()
        self.enumerator = enumerator or InterfaceEnumerator(
            driver,
            max_attempts=self.config.interfaces.max_attempts,
            retry_delay=self.config.interfaces.retry_delay_secs,
            ignored=self.config.interfaces.ignored,
        )
        self.tree = TaskSupervisor(
            "network",
            max_restarts=self.config.supervisor.max_restarts,
            max_seconds=self.config.supervisor.max_seconds,
        )
        self.configs: dict[str, CompiledConfig] = {}
        self.errors: dict[str, ConfigurationError] = {}
        self.workers: dict[str, InterfaceWorker] = {}
        self._lock = asyncio.Lock()

    async def _set_ntp_servers(self) -> None:
        servers = [
            self.store.get_config_value("string", "settings", "default_ntp_server_1"),
            self.store.get_config_value("string", "settings", "default_ntp_server_2"),
        ]
        servers = [s for s in servers if s]
        if servers:
            await self.driver.set_ntp_servers(servers)

    async def _compile(
        self, records: Iterable[NetworkInterfaceRecord] | None
    ) -> tuple[dict[str, CompiledConfig], dict[str, ConfigurationError]]:
        if records is None:
            records = self.store.get_all_network_interface_records()
        compiled, errors = await compile_all(records, self.driver)

        by_name: dict[str, CompiledConfig] = {}
        for config in compiled:
            name = config.interface_name
            if name in by_name:
                errors[name] = ConfigurationError(name, "conflicting configurations for the same interface")
                logger.error("Not bringing up %s twice: %s", name, errors[name])
                continue
            by_name[name] = config
        return by_name, errors

    def _timer_spec(self) -> ChildSpec:
        def start():
            timer = NotFoundTimer(
                self.enumerator,
                has_configs=lambda: bool(self.configs),
                on_timeout=self.rediscover,
                timeout=self.config.supervisor.not_found_timeout_secs,
            )
            return timer.run()

        return ChildSpec(name=NOT_FOUND_TIMER, start=start, restart=RestartPolicy.PERMANENT)

    def _worker_spec(self, config: CompiledConfig) -> ChildSpec:
        def start():
            worker = InterfaceWorker(
                config,
                self.driver,
                self.scan_engine,
                status_interval=self.config.supervisor.status_interval_secs,
            )
            self.workers[config.interface_name] = worker
            return worker.run()

        return ChildSpec(name=config.interface_name, start=start, restart=RestartPolicy.TRANSIENT)

    async def start(self, records: Iterable[NetworkInterfaceRecord] | None = None) -> None:
        async with self._lock:
            logger.info("Starting Networking")
            await self._set_ntp_servers()
            self.configs, self.errors = await self._compile(records)
            specs = [self._timer_spec()] + [self._worker_spec(c) for c in self.configs.values()]
            await self.tree.start(specs)

    async def reinitialize(self, records: Iterable[NetworkInterfaceRecord] | None = None) -> None:
        """Apply a new record set: stop removed or changed interfaces, start new ones."""
        async with self._lock:
            new_configs, errors = await self._compile(records)

            for name, old in list(self.configs.items()):
                if new_configs.get(name) != old:
                    await self.tree.terminate_child(name)
                    self.workers.pop(name, None)
                    logger.info("Interface %s removed", name)

            started = [c for name, c in new_configs.items() if self.configs.get(name) != c]
            self.configs = new_configs
            self.errors = errors
            for config in started:
                self.tree.start_child(self._worker_spec(config))
                logger.info("Interface %s added", config.interface_name)

    async def rediscover(self) -> None:
        logger.info("Rediscovering network configuration")
        await self.reinitialize()

    async def stop(self) -> None:
        async with self._lock:
            await self.tree.stop()
            self.workers.clear()

    async def run(self) -> None:
        await self.start()
        try:
            await self.tree.wait()
        finally:
            await self.stop()

    def status(self) -> dict[str, Any]:
        return {
            "children": self.tree.which_children(),
            "interfaces": {name: c.to_dict() for name, c in self.configs.items()},
            "errors": {name: str(e) for name, e in self.errors.items()},
        }
