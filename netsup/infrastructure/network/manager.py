"""
Interface Worker.

Owns the connection lifetime of one interface: brings it up with its
compiled configuration, publishes its scan session while it is up, and
watches link state until it is stopped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ...domain.models import CompiledConfig
from ..driver.base import DriverError, NetworkDriver, ScanSession
from .scanner import ScanEngine

logger = logging.getLogger(__name__)


class InterfaceWorker:
    """
    Connection manager for a single interface.

    Driver failures while bringing the link up are retried every
    ``status_interval`` seconds inside the worker; anything else ends the
    worker and is left to its supervisor.
    """

    def __init__(
        self,
        config: CompiledConfig,
        driver: NetworkDriver,
        scan_engine: ScanEngine,
        status_interval: float = 5.0,
    ) -> None:
        self.config = config
        self.driver = driver
        self.scan_engine = scan_engine
        self.status_interval = status_interval
        self.session: ScanSession | None = None
        self.is_up: bool | None = None
        self.last_status: dict[str, Any] = {}

    @property
    def interface(self) -> str:
        return self.config.interface_name

    async def run(self) -> None:
        try:
            await self._bring_up()
            while True:
                await self._check_status()
                await asyncio.sleep(self.status_interval)
        finally:
            await self._teardown()

    async def _bring_up(self) -> None:
        while True:
            try:
                self.session = await self.driver.bring_up(self.interface, self.config.driver_options)
                break
            except DriverError as e:
                logger.warning("Bringing up %s failed: %s", self.interface, e)
                await asyncio.sleep(self.status_interval)

        if self.session is not None:
            self.scan_engine.register(self.interface, self.session)
        logger.info("Interface %s configured", self.interface)

    async def _check_status(self) -> None:
        try:
            self.last_status = await self.driver.interface_status(self.interface)
        except DriverError as e:
            logger.debug("Status of %s unavailable: %s", self.interface, e)
            self.last_status = {}

        is_up = bool(self.last_status.get("is_up"))
        if is_up != self.is_up:
            logger.info("Interface %s is %s", self.interface, "up" if is_up else "down")
        self.is_up = is_up

    async def _teardown(self) -> None:
        if self.session is not None:
            self.scan_engine.unregister(self.interface, self.session)
            self.session = None
        try:
            await self.driver.bring_down(self.interface)
        except DriverError as e:
            logger.warning("Bringing down %s failed: %s", self.interface, e)
