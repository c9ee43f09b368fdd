"""Driver layer - contract, Linux implementation and in-memory mock."""

from .base import DriverError, InterfaceStatus, NetworkDriver, ScanSession
from .linux import LinuxNetworkDriver, render_wpa_supplicant_conf
from .mock import MockNetworkDriver

__all__ = [
    "DriverError",
    "InterfaceStatus",
    "NetworkDriver",
    "ScanSession",
    "LinuxNetworkDriver",
    "MockNetworkDriver",
    "render_wpa_supplicant_conf",
]
