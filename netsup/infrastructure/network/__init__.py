"""Network infrastructure - discovery, scanning, DNS probing, config compilation and supervision."""

from .compiler import ConfigurationError, compile_all, ip_settings, to_driver_config
from .dns_probe import DnsProbe
from .interfaces import InterfaceEnumerator
from .manager import InterfaceWorker
from .not_found_timer import NotFoundTimer
from .scan_decoder import clean_results, decode_security, parse_scan_results, sort_results
from .scanner import ScanEngine, ScanTimeoutError
from .supervisor import NetworkSupervisor

__all__ = [
    # Discovery
    "InterfaceEnumerator",
    # Scanning
    "ScanEngine",
    "ScanTimeoutError",
    "parse_scan_results",
    "decode_security",
    "sort_results",
    "clean_results",
    # DNS
    "DnsProbe",
    # Compiler
    "ConfigurationError",
    "compile_all",
    "ip_settings",
    "to_driver_config",
    # Supervision
    "InterfaceWorker",
    "NotFoundTimer",
    "NetworkSupervisor",
]
