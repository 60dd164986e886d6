"""
Freshness rules for the on-disk content cache.

An entry is fresh while its age is strictly below the current TTL. The TTL is
read from the settings on every call, so a changed lifetime applies to the next
lookup rather than being frozen into entries at write time.
"""

import logging
import time
from collections.abc import Callable

from http_content.exceptions import StorageError
from http_content.models.config import ContentSettings
from http_content.models.results import CacheEntry

from .store import LocalStore

log = logging.getLogger(__name__)


class CacheStore:
    """
    Wraps the DATA store with the "exists and fresh" predicate and the
    invalidate-then-refetch transition.
    """

    RETIRED_SUFFIX = ".stale"

    def __init__(
        self,
        store: LocalStore,
        settings: ContentSettings,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initializes the cache store.

        Args:
            store: The writable store holding cached files.
            settings: Runtime settings providing the current TTL.
            clock: Returns the current unix time; replaceable in tests.
        """
        self.store = store
        self.settings = settings
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def entry(self, path: str) -> CacheEntry:
        """Returns a snapshot of the entry at a path."""
        modified_at = self.store.last_modified(path)
        if modified_at is None:
            return CacheEntry(path=path, exists=False)
        return CacheEntry(
            path=path,
            exists=True,
            modified_at=modified_at,
            size=self.store.size(path),
        )

    def age(self, path: str) -> float | None:
        """Seconds since the entry was last written, or None if it is absent."""
        return self.entry(path).age(self.now())

    def is_fresh(self, path: str) -> bool:
        age = self.age(path)
        return age is not None and age < self.settings.ttl_seconds

    def is_expired(self, path: str) -> bool:
        """True only for existing entries older than the TTL (age == TTL is kept)."""
        age = self.age(path)
        return age is not None and age > self.settings.ttl_seconds

    def invalidate(self, path: str) -> None:
        """Deletes the entry if it exists. Never raises."""
        try:
            if self.store.delete(path):
                log.debug(f"Invalidated cache entry '{path}'.")
        except StorageError as e:
            log.warning(f"Could not invalidate cache entry '{path}': {e}")

    def retired_path(self, path: str) -> str:
        return path + self.RETIRED_SUFFIX

    def retire(self, path: str) -> bool:
        """
        Moves an expired entry out of the way before a refetch.

        The target path is left empty, so a failed refetch never looks fresh,
        while the old body stays available as a last-resort fallback. The move
        keeps the file's timestamp, so eviction still treats it as expired.
        """
        if not self.store.exists(path):
            return False
        try:
            self.store.rename(path, self.retired_path(path))
            log.debug(f"Retired expired cache entry '{path}'.")
            return True
        except StorageError as e:
            log.debug(f"Could not retire '{path}' ({e}); deleting it instead.")
            self.invalidate(path)
            return False

    def discard_retired(self, path: str) -> None:
        self.invalidate(self.retired_path(path))

    async def read(self, path: str) -> bytes:
        return await self.store.read(path)

    async def read_any(self, path: str) -> tuple[bytes, bool] | None:
        """
        Reads whatever copy of an entry is on disk, regardless of freshness.

        Returns:
            A tuple of (content, is_stale), or None if no copy can be read.
        """
        for candidate in (path, self.retired_path(path)):
            if not self.store.exists(candidate):
                continue
            try:
                content = await self.store.read(candidate)
            except StorageError as e:
                log.debug(f"Fallback read of '{candidate}' failed: {e}")
                continue
            return content, candidate != path or not self.is_fresh(path)
        return None

    async def write(self, path: str, data: bytes) -> None:
        """Persists a freshly fetched body. Raises StorageError on failure."""
        await self.store.write(path, data)

    def ensure_bucket(self, bucket: str) -> None:
        if bucket and not self.store.is_dir(bucket):
            self.store.create_dir(bucket)
