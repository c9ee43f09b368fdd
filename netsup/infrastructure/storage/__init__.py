"""Persistence - read-only accessors for stored interface records and settings."""

from .config_store import ConfigStore, MemoryConfigStore, YamlConfigStore

__all__ = [
    "ConfigStore",
    "MemoryConfigStore",
    "YamlConfigStore",
]
