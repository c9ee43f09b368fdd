"""
Scan Engine
===========

Drives the scan-request / poll-until-results loop for an interface.

Interfaces are only scan-capable while their worker holds a live supplicant
session; workers register that session here when they come up and remove it
on teardown.

Usage:
    engine = ScanEngine(timeout=30.0)
    engine.register("wlan0", session)

    for entry in await engine.scan("wlan0"):
        print(entry.ssid, entry.level)
"""

from __future__ import annotations

import asyncio
import logging
import time

from ...domain.models import ScanEntry
from ..driver.base import ScanSession
from .scan_decoder import clean_results, parse_scan_results

logger = logging.getLogger(__name__)

_DEFAULT = object()


class ScanTimeoutError(TimeoutError):
    """The driver reported no scan results before the deadline."""


class ScanEngine:
    """Per-interface wireless scanning against registered supplicant sessions."""

    def __init__(self, poll_interval: float = 0.5, timeout: float | None = 30.0) -> None:
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sessions: dict[str, ScanSession] = {}
        self._stats = {
            "scans_total": 0,
            "polls_total": 0,
            "timeouts": 0,
        }

    @property
    def sessions(self) -> dict[str, ScanSession]:
        return dict(self._sessions)

    @property
    def stats(self) -> dict:
        return dict(self._stats)

    def register(self, interface: str, session: ScanSession) -> None:
        self._sessions[interface] = session
        logger.debug("Scan session registered for %s", interface)

    def unregister(self, interface: str, session: ScanSession | None = None) -> None:
        """Drop the session for ``interface``; a stale ``session`` never removes a newer one."""
        current = self._sessions.get(interface)
        if current is None or (session is not None and current is not session):
            return
        del self._sessions[interface]
        logger.debug("Scan session removed for %s", interface)

    async def scan(self, interface: str, timeout: float | None | object = _DEFAULT) -> list[ScanEntry]:
        """
        Scan on ``interface`` and return visible networks, strongest first.

        Returns an empty list when the interface has no scan session. Blocks
        until the driver reports at least one entry, for at most ``timeout``
        seconds (``None`` waits indefinitely); raises ``ScanTimeoutError``
        when the deadline passes.
        """
        session = self._sessions.get(interface)
        if session is None:
            logger.debug("No scan session for %s", interface)
            return []

        limit = self.timeout if timeout is _DEFAULT else timeout
        self._stats["scans_total"] += 1
        await session.request_scan()
        entries = await self._wait_for_results(session, limit)
        results = clean_results(entries)
        logger.debug("Scan on %s complete: %d networks", interface, len(results))
        return results

    async def _wait_for_results(self, session: ScanSession, limit: float | None) -> list[ScanEntry]:
        deadline = None if limit is None else time.monotonic() + limit
        while True:
            self._stats["polls_total"] += 1
            entries = parse_scan_results(await session.poll_scan_results())
            if entries:
                return entries
            if deadline is not None and time.monotonic() + self.poll_interval > deadline:
                self._stats["timeouts"] += 1
                raise ScanTimeoutError(f"no scan results on {session.interface} after {limit:.1f}s")
            await asyncio.sleep(self.poll_interval)

    async def get_level(self, interface: str, ssid: str) -> int | None:
        """Signal level of ``ssid`` from a fresh scan, or None if it is not visible."""
        for entry in await self.scan(interface):
            if entry.ssid == ssid:
                return entry.level
        return None
