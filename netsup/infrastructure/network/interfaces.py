"""Interface discovery."""

from __future__ import annotations

import asyncio
import logging

from ..driver.base import DriverError, InterfaceStatus, NetworkDriver

logger = logging.getLogger(__name__)

LOOPBACK = "lo"
# loopback, USB gadget and SIT tunnel entries are never usable
UNUSABLE_INTERFACES = ("lo", "usb0", "sit0")


class InterfaceEnumerator:
    """
    Lists usable network interfaces.

    While the kernel device table is still settling at boot the driver may
    report nothing but loopback; that is retried a few times before giving
    up with an empty result.
    """

    def __init__(
        self,
        driver: NetworkDriver,
        max_attempts: int = 5,
        retry_delay: float = 0.1,
        ignored: tuple[str, ...] | list[str] = UNUSABLE_INTERFACES,
    ) -> None:
        self.driver = driver
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.ignored = tuple(ignored)

    async def list_interfaces(self, max_attempts: int | None = None) -> dict[str, InterfaceStatus]:
        """Return ``{name: status}`` for usable interfaces, or ``{}`` when none showed up."""
        attempts = self.max_attempts if max_attempts is None else max_attempts

        while attempts > 0:
            names = await self.driver.enumerate_interfaces()
            if names == [LOOPBACK]:
                attempts -= 1
                logger.debug("Only loopback present, %d attempts left", attempts)
                await asyncio.sleep(self.retry_delay)
                continue

            found: dict[str, InterfaceStatus] = {}
            for name in names:
                if name in self.ignored:
                    continue
                try:
                    found[name] = await self.driver.interface_status(name)
                except DriverError as exc:
                    # Removed between enumeration and the status lookup
                    logger.debug("Skipping %s: %s", name, exc)
            return found

        logger.info("No network interfaces found")
        return {}
