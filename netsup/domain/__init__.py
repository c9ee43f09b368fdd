"""netsup Domain - Core models."""

from .models import (
    CompiledConfig,
    DnsResult,
    InterfaceType,
    Ipv4Method,
    NetworkInterfaceRecord,
    ScanEntry,
    SecurityMode,
)

__all__ = [
    "CompiledConfig",
    "DnsResult",
    "InterfaceType",
    "Ipv4Method",
    "NetworkInterfaceRecord",
    "ScanEntry",
    "SecurityMode",
]
