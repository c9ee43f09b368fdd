"""DNS reachability probe used by health checks."""

from __future__ import annotations

import ipaddress
import logging
from urllib.parse import urlparse

from ...domain.models import DnsResult
from ..driver.base import NetworkDriver
from ..storage.config_store import ConfigStore

logger = logging.getLogger(__name__)


class DnsProbe:
    """
    Checks that name resolution works.

    The probe never retries; a failed lookup comes back as a ``DnsResult``
    with ``ok`` False and the caller decides what that means for health.
    """

    def __init__(self, driver: NetworkDriver, store: ConfigStore, default_dns_name: str = "my.farm.bot") -> None:
        self.driver = driver
        self.store = store
        self.default_dns_name = default_dns_name

    def default_hostname(self) -> str:
        """Host of the configured API server, else the configured probe name."""
        server = self.store.get_config_value("string", "authorization", "server")
        if server:
            host = urlparse(server).hostname
            if host:
                return host
        return self.store.get_config_value("string", "settings", "default_dns_name") or self.default_dns_name

    async def test_dns(self, hostname: str | None = None) -> DnsResult:
        hostname = hostname or self.default_hostname()
        await self.driver.clear_resolver_cache()

        try:
            addr = ipaddress.IPv4Address(hostname)
        except ValueError:
            pass
        else:
            return DnsResult(hostname=hostname, ok=True, addresses=[str(addr)], synthetic=True)

        result = await self.driver.resolve_hostname(hostname)
        if not result.ok:
            logger.warning("DNS lookup for %s failed: %s", hostname, result.error)
        return result
