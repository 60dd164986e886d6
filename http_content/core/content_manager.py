"""
The high-level entry point wiring stores, fetcher, coordinator, sweeper,
packager and material cache together behind the public download operations.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from http_content.models.config import ContentConfig, ContentSettings
from http_content.models.results import DownloadResult
from http_content.models.stats import CacheStats
from http_content.net.fetcher import Fetcher
from http_content.net.transport import AiohttpTransport, Transport
from http_content.storage.cache import CacheStore
from http_content.storage.namespace import ContentNamespace
from http_content.storage.store import LocalStore
from http_content.utils.structured_logger import ContentEventLogger

from .coordinator import DownloadCoordinator
from .materials import Material, MaterialCache
from .packager import AudioPackager
from .paths import PathResolver
from .sweeper import EvictionSweeper

log = logging.getLogger(__name__)


class ContentManager:
    """
    Owns one content cache for a realm.

    Usage:
        async with ContentManager(ContentConfig(cache_dir=path)) as content:
            result = await content.download_content("data", url)
    """

    def __init__(
        self,
        config: ContentConfig | ContentSettings,
        transport: Transport | None = None,
        events: ContentEventLogger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = (
            config if isinstance(config, ContentSettings) else ContentSettings(config)
        )
        self.stats = CacheStats()
        self.events = events

        self.data_store = LocalStore(self.settings.content_root, name="DATA")
        self.game_store = LocalStore(
            self.settings.game_root, name="GAME", read_only=True
        )
        self.namespace = ContentNamespace(self.game_store)
        self.cache = CacheStore(self.data_store, self.settings, clock=clock)

        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport()
        self.fetcher = Fetcher(self.transport, settings=self.settings)
        self.resolver = PathResolver()

        self.coordinator = DownloadCoordinator(
            self.cache, self.fetcher, self.resolver, self.stats, events
        )
        self.sweeper = EvictionSweeper(self.cache, self.settings, self.stats, events)
        self.packager = AudioPackager(
            self.cache, self.fetcher, self.namespace, self.resolver, self.stats, events
        )
        self.materials = MaterialCache()
        self._started = False

    async def start(self) -> None:
        """Runs the startup sweep (if autoremove is on) and starts watching settings."""
        if self._started:
            return
        self._started = True
        self.sweeper.attach()
        if self.settings.autoremove:
            await self.sweeper.sweep()

    async def close(self) -> None:
        self.sweeper.detach()
        await self.sweeper.wait_pending()
        if self._owns_transport:
            await self.transport.close()
        self._started = False

    async def __aenter__(self) -> "ContentManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def download(
        self, url: str, target_path: str, headers: dict[str, str] | None = None
    ) -> DownloadResult:
        return await self.coordinator.download(url, target_path, headers)

    async def download_content(
        self,
        bucket: str,
        url: str,
        headers: dict[str, str] | None = None,
        extension: str | None = None,
    ) -> DownloadResult:
        return await self.coordinator.download_content(bucket, url, headers, extension)

    async def download_audio(
        self,
        url: str,
        extension: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Path:
        return await self.coordinator.download_audio(url, extension, headers)

    async def download_image(
        self,
        url: str,
        extension: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Path:
        return await self.coordinator.download_image(url, extension, headers)

    async def download_material(
        self,
        url: str,
        parameters: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Material:
        """Downloads an image and returns its memoized Material."""
        path = await self.coordinator.download_image(url, headers=headers)
        return await self.materials.get_or_load(path, parameters)

    async def download_sound(
        self, url: str, headers: dict[str, str] | None = None
    ) -> str:
        return await self.packager.download_sound(url, headers)

    async def clear_cache(self, folder: str | None = None) -> None:
        """Evicts expired entries below folder, or below the whole content root."""
        await self.sweeper.sweep(folder)
