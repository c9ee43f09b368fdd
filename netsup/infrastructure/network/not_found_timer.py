"""Sentinel worker for devices that boot without usable interfaces."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .interfaces import InterfaceEnumerator

logger = logging.getLogger(__name__)


class NotFoundTimer:
    """
    Triggers rediscovery when networking stays unavailable.

    Networking counts as unavailable when no usable interface is present or
    no interface configuration compiled. If that is still the case after
    ``timeout`` seconds, ``on_timeout`` is awaited and the wait starts over.
    """

    def __init__(
        self,
        enumerator: InterfaceEnumerator,
        has_configs: Callable[[], bool],
        on_timeout: Callable[[], Awaitable[None]],
        timeout: float = 600.0,
    ) -> None:
        self.enumerator = enumerator
        self.has_configs = has_configs
        self.on_timeout = on_timeout
        self.timeout = timeout
        self.triggered = 0

    async def network_missing(self) -> bool:
        interfaces = await self.enumerator.list_interfaces()
        return not interfaces or not self.has_configs()

    async def run(self) -> None:
        while True:
            if not await self.network_missing():
                await asyncio.sleep(self.timeout)
                continue

            logger.warning("Network not found, rediscovering in %.0fs", self.timeout)
            await asyncio.sleep(self.timeout)
            if await self.network_missing():
                self.triggered += 1
                logger.warning("Network still not found, rediscovering")
                await self.on_timeout()
