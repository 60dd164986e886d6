"""
Storage Layer.

This package handles all data persistence: the path-addressed byte store, the
TTL-aware content cache, archive containers and their mount namespace, and the
INI configuration file.
"""

from .cache import CacheStore
from .config_manager import ConfigManager
from .container import ContainerReader, ContainerWriter
from .namespace import ContentNamespace
from .store import LocalStore

__all__ = [
    "CacheStore",
    "ConfigManager",
    "ContainerReader",
    "ContainerWriter",
    "ContentNamespace",
    "LocalStore",
]
