"""
Value objects passed between the fetch, cache and download layers.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class FetchOutcome:
    """A raw HTTP response. Never persisted; only its body becomes a cache entry."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    @property
    def content_type(self) -> str | None:
        """The media type of the body, without parameters such as charset."""
        value = self.header("Content-Type")
        if value is None:
            return None
        return value.split(";", 1)[0].strip().lower()


@dataclass(frozen=True)
class DownloadResult:
    """Returned by every successful download, whether served from disk or network."""

    path: Path
    content: bytes
    from_cache: bool = False
    stale: bool = False

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot of one file in the content cache."""

    path: str
    exists: bool
    modified_at: float | None = None
    size: int = 0

    def age(self, now: float) -> float | None:
        if not self.exists or self.modified_at is None:
            return None
        return now - self.modified_at
