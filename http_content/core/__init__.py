"""
Core application engine.

The `ContentManager` is the public entry point. It delegates each download to
the `DownloadCoordinator`, sound packaging to the `AudioPackager` and cache
eviction to the `EvictionSweeper`.
"""

from .content_manager import ContentManager
from .coordinator import DownloadCoordinator, DownloadState
from .materials import Material, MaterialCache
from .packager import AudioPackager
from .paths import PathResolver
from .sweeper import EvictionSweeper

__all__ = [
    "AudioPackager",
    "ContentManager",
    "DownloadCoordinator",
    "DownloadState",
    "EvictionSweeper",
    "Material",
    "MaterialCache",
    "PathResolver",
]
