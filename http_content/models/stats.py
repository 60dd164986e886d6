"""
Counters describing how the content cache has been used during a session.
"""

from dataclasses import dataclass


@dataclass
class CacheStats:
    """Tracks cache hits, network fetches and evictions for a session."""

    hits: int = 0
    misses: int = 0
    fetches: int = 0
    fallbacks: int = 0
    failures: int = 0
    evictions: int = 0
    bytes_fetched: int = 0
    sounds_mounted: int = 0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_fetch(self, size: int) -> None:
        self.fetches += 1
        self.bytes_fetched += size

    def record_fallback(self) -> None:
        self.fallbacks += 1

    def record_failure(self) -> None:
        self.failures += 1

    def record_evictions(self, count: int) -> None:
        self.evictions += count

    @property
    def hit_rate(self) -> float:
        """Share of lookups served from disk, between 0 and 1."""
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def as_dict(self) -> dict[str, int | float]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "fetches": self.fetches,
            "fallbacks": self.fallbacks,
            "failures": self.failures,
            "evictions": self.evictions,
            "bytes_fetched": self.bytes_fetched,
            "sounds_mounted": self.sounds_mounted,
            "hit_rate": round(self.hit_rate, 3),
        }
