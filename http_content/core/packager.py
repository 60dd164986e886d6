"""
Packages downloaded sounds into mountable containers.

A sound URL becomes a file at ``sound/http_content/<name>`` in the GAME
namespace. The packaged container is cached in the DATA store under the
``sounds`` bucket and mounted on every use, so game-level code can refer to the
sound by a stable path.
"""

import logging

from pathvalidate import sanitize_filename

from http_content.exceptions import (
    AssemblyFailedError,
    HttpContentError,
    InvalidFileTypeError,
    InvalidLinkError,
    MountError,
    StorageError,
)
from http_content.models.stats import CacheStats
from http_content.net.fetcher import Fetcher
from http_content.storage.cache import CacheStore
from http_content.storage.container import ContainerWriter
from http_content.storage.namespace import ContentNamespace
from http_content.utils.structured_logger import ContentEventLogger

from .paths import PathResolver, url_extension, url_filename

log = logging.getLogger(__name__)

SOUND_EXTENSIONS = frozenset({"wav", "mp3", "ogg"})
SOUND_ROOT = "sound/"
SOUND_FOLDER = "sound/http_content/"
SOUND_BUCKET = "sounds"
CONTAINER_SUFFIX = ".gma.dat"


class AudioPackager:
    """Implements download_sound on top of the Fetcher and the mount namespace."""

    def __init__(
        self,
        cache: CacheStore,
        fetcher: Fetcher,
        namespace: ContentNamespace,
        resolver: PathResolver | None = None,
        stats: CacheStats | None = None,
        events: ContentEventLogger | None = None,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.namespace = namespace
        self.resolver = resolver or PathResolver()
        self.stats = stats or CacheStats()
        self.events = events

    @staticmethod
    def sound_path(url: str) -> str:
        """
        Validates a sound URL and returns its path in the GAME namespace.

        Raises:
            InvalidLinkError: The URL has no file name or no extension.
            InvalidFileTypeError: The extension is not wav, mp3 or ogg.
        """
        filename = url_filename(url.strip().lower())
        extension = url_extension(url.strip().lower())
        if not filename or not extension:
            raise InvalidLinkError(f"invalid link '{url}'")
        if extension not in SOUND_EXTENSIONS:
            raise InvalidFileTypeError(extension)
        return SOUND_FOLDER + sanitize_filename(filename, replacement_text="_")

    def container_path(self, sound_path: str) -> str:
        return f"{SOUND_BUCKET}/{self.resolver.content_key(sound_path)}{CONTAINER_SUFFIX}"

    async def download_sound(
        self, url: str, headers: dict[str, str] | None = None
    ) -> str:
        """
        Makes a remote sound available in the GAME namespace.

        Returns:
            The sound's path relative to the 'sound/' root, e.g.
            'http_content/beep.wav'.

        Raises:
            InvalidLinkError, InvalidFileTypeError: Before any network activity.
            NetworkError, HttpStatusError, InvalidContentTypeError: From the fetch.
            MountError: A fresh cached container could not be mounted.
            AssemblyFailedError: A new container could not be written or mounted.
        """
        sound_path = self.sound_path(url)
        relative = sound_path[len(SOUND_ROOT) :]

        if self.namespace.exists(sound_path):
            log.debug(f"'{sound_path}' already exists in the namespace.")
            return relative

        self.cache.ensure_bucket(SOUND_BUCKET)
        container = self.container_path(sound_path)

        if self.cache.is_fresh(container):
            self.stats.record_hit()
            if not await self.namespace.mount(self.cache.store.resolve(container)):
                raise MountError(f"unable to mount cached container for '{relative}'")
            self._mounted(url, relative, from_cache=True)
            return relative

        self.stats.record_miss()
        self.cache.invalidate(container)

        try:
            outcome = await self.fetcher.fetch_audio(url, headers)
        except HttpContentError:
            self.stats.record_failure()
            raise

        filename = sound_path.rsplit("/", 1)[-1]
        writer = ContainerWriter(description=f"Downloaded from {url}")
        writer.set_title(filename)
        writer.add_entry(sound_path, outcome.body)

        try:
            await self.cache.write(container, writer.close())
        except StorageError as e:
            self.stats.record_failure()
            raise AssemblyFailedError(f"unable to start recording: {e}") from e
        self.stats.record_fetch(len(outcome.body))

        if not await self.namespace.mount(self.cache.store.resolve(container)):
            self.stats.record_failure()
            raise AssemblyFailedError(f"assembly failed for '{relative}'")

        self._mounted(url, relative, from_cache=False)
        return relative

    def _mounted(self, url: str, relative: str, from_cache: bool) -> None:
        self.stats.sounds_mounted += 1
        log.debug(f"Mounted sound '{relative}' (cached container: {from_cache}).")
        if self.events:
            self.events.sound_mounted(url, relative, from_cache)
