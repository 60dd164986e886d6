"""
The fetch-or-serve decision for one cached URL.

Each download walks CheckFresh -> Invalidate -> Fetch -> Persist -> Success.
A fresh entry ends the walk at CheckFresh without touching the network; an
unreadable fresh entry is treated like an absent one. Fetch and persist
failures reject the download. Only ``download_content`` adds a last-resort
fallback to an older local copy when the fetch fails.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from http_content.exceptions import FetchError, StorageError
from http_content.models.results import DownloadResult
from http_content.models.stats import CacheStats
from http_content.net.fetcher import Fetcher
from http_content.storage.cache import CacheStore
from http_content.utils.structured_logger import ContentEventLogger

from .paths import PathResolver, path_extension

log = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset(
    {
        "txt",
        "dat",
        "json",
        "xml",
        "csv",
        "jpg",
        "jpeg",
        "png",
        "vtf",
        "vmt",
        "mp3",
        "wav",
        "ogg",
    }
)

AUDIO_BUCKET = "sounds/files"
AUDIO_EXTENSION = "mp3"
IMAGE_BUCKET = "images"
IMAGE_EXTENSION = "png"


class DownloadState(Enum):
    """Steps of a single download."""

    CHECK_FRESH = "check_fresh"
    INVALIDATE = "invalidate"
    FETCH = "fetch"
    PERSIST = "persist"
    SUCCESS = "success"


@dataclass
class DownloadRun:
    """Mutable state carried through one download."""

    url: str
    path: str
    headers: dict[str, str]
    state: DownloadState = DownloadState.CHECK_FRESH
    content: bytes = b""
    from_cache: bool = False
    history: list[DownloadState] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)


def normalize_target(target_path: str) -> str:
    """
    Lower-cases a cache path and appends '.dat' unless its extension is allowed.

    >>> normalize_target("Folder/Name")
    'folder/name.dat'
    >>> normalize_target("images/a.PNG")
    'images/a.png'
    """
    path = target_path.replace("\\", "/").strip("/").lower()
    if path_extension(path) not in ALLOWED_EXTENSIONS:
        path += ".dat"
    return path


class DownloadCoordinator:
    """
    Orchestrates PathResolver, CacheStore and Fetcher.

    Concurrent downloads of the same target path share one in-flight task, so
    the network is hit once and every waiter receives the same result. The
    headers of the first caller are the ones sent.
    """

    def __init__(
        self,
        cache: CacheStore,
        fetcher: Fetcher,
        resolver: PathResolver | None = None,
        stats: CacheStats | None = None,
        events: ContentEventLogger | None = None,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.resolver = resolver or PathResolver()
        self.stats = stats or CacheStats()
        self.events = events
        self._inflight: dict[str, asyncio.Task[DownloadResult]] = {}
        self._handlers = {
            DownloadState.CHECK_FRESH: self._check_fresh,
            DownloadState.INVALIDATE: self._invalidate,
            DownloadState.FETCH: self._fetch,
            DownloadState.PERSIST: self._persist,
        }

    def absolute_path(self, path: str) -> Path:
        return self.cache.store.resolve(path)

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def download(
        self,
        url: str,
        target_path: str,
        headers: dict[str, str] | None = None,
    ) -> DownloadResult:
        """
        Returns the bytes for a URL, served from target_path while it is fresh.

        Raises:
            NetworkError: The transport failed.
            HttpStatusError: The server did not answer 200.
            StorageError: The fetched body could not be persisted.
        """
        path = normalize_target(target_path)
        task = self._inflight.get(path)
        if task is None:
            task = asyncio.ensure_future(self._run(DownloadRun(url, path, headers or {})))
            self._inflight[path] = task
            task.add_done_callback(lambda done, p=path: self._forget(p, done))
        else:
            log.debug(f"Joining in-flight download for '{path}'.")
        return await asyncio.shield(task)

    def _forget(self, path: str, task: asyncio.Task) -> None:
        if self._inflight.get(path) is task:
            del self._inflight[path]
        if not task.cancelled():
            # Mark the exception as retrieved even if every waiter was cancelled.
            task.exception()

    async def _run(self, run: DownloadRun) -> DownloadResult:
        while run.state is not DownloadState.SUCCESS:
            run.history.append(run.state)
            run.state = await self._handlers[run.state](run)
        run.history.append(run.state)
        log.debug(
            f"Download of '{run.path}' finished via "
            f"{' -> '.join(s.value for s in run.history)}"
        )
        return DownloadResult(
            path=self.absolute_path(run.path),
            content=run.content,
            from_cache=run.from_cache,
        )

    async def _check_fresh(self, run: DownloadRun) -> DownloadState:
        if self.cache.is_fresh(run.path):
            try:
                run.content = await self.cache.read(run.path)
            except StorageError as e:
                log.debug(f"Fresh entry '{run.path}' is unreadable ({e}), refetching.")
            else:
                run.from_cache = True
                self.stats.record_hit()
                if self.events:
                    self.events.cache_hit(run.url, run.path, len(run.content))
                return DownloadState.SUCCESS
        self.stats.record_miss()
        return DownloadState.INVALIDATE

    async def _invalidate(self, run: DownloadRun) -> DownloadState:
        self.cache.retire(run.path)
        return DownloadState.FETCH

    async def _fetch(self, run: DownloadRun) -> DownloadState:
        if self.events:
            self.events.fetch_started(run.url, run.path)
        try:
            outcome = await self.fetcher.fetch(run.url, run.headers)
        except FetchError as e:
            self.stats.record_failure()
            if self.events:
                self.events.fetch_failed(run.url, run.path, str(e))
            raise
        run.content = outcome.body
        return DownloadState.PERSIST

    async def _persist(self, run: DownloadRun) -> DownloadState:
        try:
            await self.cache.write(run.path, run.content)
        except StorageError:
            self.stats.record_failure()
            raise
        self.cache.discard_retired(run.path)
        self.stats.record_fetch(len(run.content))
        if self.events:
            self.events.fetch_completed(
                run.url,
                run.path,
                len(run.content),
                time.monotonic() - run.started_at,
            )
        return DownloadState.SUCCESS

    async def download_content(
        self,
        bucket: str,
        url: str,
        headers: dict[str, str] | None = None,
        extension: str | None = None,
    ) -> DownloadResult:
        """
        Downloads a URL into a bucket under its content-addressed name.

        If the fetch fails, any local copy of the entry is returned instead,
        however old it is. Without one, the fetch error propagates.
        """
        bucket = bucket.replace("\\", "/").strip("/").lower()
        self.cache.ensure_bucket(bucket)
        path = normalize_target(self.resolver.resolve(bucket, url, extension))
        try:
            return await self.download(url, path, headers)
        except FetchError as e:
            fallback = await self.cache.read_any(path)
            if fallback is None:
                raise
            content, stale = fallback
            self.stats.record_fallback()
            if self.events:
                self.events.stale_fallback(url, path, len(content))
            log.warning(
                f"[yellow]Fetching {url} failed ({e}); serving the local copy."
                "[/yellow]"
            )
            return DownloadResult(
                path=self.absolute_path(path),
                content=content,
                from_cache=True,
                stale=stale,
            )

    async def download_audio(
        self,
        url: str,
        extension: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Path:
        result = await self.download_content(
            AUDIO_BUCKET, url, headers, extension or AUDIO_EXTENSION
        )
        return result.path

    async def download_image(
        self,
        url: str,
        extension: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Path:
        result = await self.download_content(
            IMAGE_BUCKET, url, headers, extension or IMAGE_EXTENSION
        )
        return result.path
