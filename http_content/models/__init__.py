"""
Data Models Layer.

This package contains the Pydantic configuration model and the small value
objects shared by the cache, fetch and download layers.
"""

from .config import ContentConfig, ContentSettings
from .results import CacheEntry, DownloadResult, FetchOutcome
from .stats import CacheStats

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ContentConfig",
    "ContentSettings",
    "DownloadResult",
    "FetchOutcome",
]
