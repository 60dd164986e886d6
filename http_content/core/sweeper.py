"""
TTL-based eviction over the content cache directory tree.
"""

import asyncio
import logging
import time

from http_content.exceptions import StorageError
from http_content.models.config import ContentSettings
from http_content.models.stats import CacheStats
from http_content.storage.cache import CacheStore
from http_content.utils.structured_logger import ContentEventLogger

log = logging.getLogger(__name__)


class EvictionSweeper:
    """
    Deletes cache files whose age exceeds the current TTL.

    Runs once at startup when autoremove is enabled, and again every time the
    autoremove setting is switched on. Deletion failures are ignored so one
    locked or vanished file cannot abort the sweep.
    """

    def __init__(
        self,
        cache: CacheStore,
        settings: ContentSettings,
        stats: CacheStats | None = None,
        events: ContentEventLogger | None = None,
    ):
        self.cache = cache
        self.settings = settings
        self.stats = stats or CacheStats()
        self.events = events
        self._pending: set[asyncio.Task] = set()
        self._unsubscribe = None

    async def sweep(self, folder: str | None = None) -> None:
        """Recursively evicts expired entries below folder (default: the cache root)."""
        start = time.monotonic()
        removed = await asyncio.to_thread(self._sweep_folder, folder or "")
        self._record(folder or "", removed, time.monotonic() - start)

    def sweep_sync(self, folder: str | None = None) -> None:
        """Blocking variant for callers without a running event loop."""
        start = time.monotonic()
        removed = self._sweep_folder(folder or "")
        self._record(folder or "", removed, time.monotonic() - start)

    def _record(self, folder: str, removed: int, duration: float) -> None:
        self.stats.record_evictions(removed)
        if removed:
            log.info(f"Cache sweep removed {removed} expired file(s).")
        else:
            log.debug(f"Cache sweep of '{folder or '/'}' removed nothing.")
        if self.events:
            self.events.sweep_completed(folder or "/", removed, duration)

    def _sweep_folder(self, folder: str) -> int:
        """Walks one folder depth-first and returns how many files were removed."""
        prefix = f"{folder.strip('/')}/" if folder.strip("/") else ""
        try:
            files, folders = self.cache.store.list_entries(prefix.rstrip("/"))
        except StorageError as e:
            log.debug(f"Skipping unreadable folder '{folder}': {e}")
            return 0

        removed = 0
        for name in folders:
            removed += self._sweep_folder(prefix + name)

        for name in files:
            path = prefix + name
            try:
                if self.cache.is_expired(path) and self.cache.store.delete(path):
                    removed += 1
            except StorageError as e:
                log.debug(f"Could not evict '{path}': {e}")
        return removed

    def attach(self) -> None:
        """Subscribes to the autoremove setting so enabling it triggers a sweep."""
        if self._unsubscribe is None:
            self._unsubscribe = self.settings.subscribe(
                "autoremove", self._on_autoremove_changed
            )

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_autoremove_changed(self, _key: str, _old: bool, new: bool) -> None:
        if not new:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.sweep_sync()
            return
        task = loop.create_task(self.sweep())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_pending(self) -> None:
        """Waits for sweeps scheduled by setting changes to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
