import asyncio
import os
import time
from pathlib import Path

import pytest

from http_content.exceptions import NetworkError
from http_content.models.config import ContentConfig, ContentSettings
from http_content.models.results import FetchOutcome
from http_content.storage.cache import CacheStore
from http_content.storage.store import LocalStore


class FakeTransport:
    """Scripted transport: answers from a URL table and records every call."""

    def __init__(self):
        self.responses: dict[str, FetchOutcome | Exception] = {}
        self.calls: list[tuple[str, dict[str, str], float]] = []
        self.closed = False

    def add(
        self,
        url: str,
        body: bytes = b"",
        status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.responses[url] = FetchOutcome(status=status, headers=headers or {}, body=body)

    def fail(self, url: str, message: str = "connection reset by peer") -> None:
        self.responses[url] = NetworkError(message)

    def call_count(self, url: str | None = None) -> int:
        return sum(1 for called, _, _ in self.calls if url is None or called == url)

    async def fetch(self, url, headers=None, timeout=120.0):
        self.calls.append((url, dict(headers or {}), timeout))
        await asyncio.sleep(0)
        response = self.responses.get(url)
        if response is None:
            raise NetworkError(f"no route to {url}")
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def config(tmp_path):
    return ContentConfig(cache_dir=tmp_path / "cache", lifetime_hours=1)


@pytest.fixture
def settings(config):
    return ContentSettings(config)


@pytest.fixture
def store(settings):
    return LocalStore(settings.content_root)


@pytest.fixture
def cache(store, settings):
    return CacheStore(store, settings)


@pytest.fixture
def age_file():
    """Returns a function that backdates a file's modification time."""

    def _age(path: Path, seconds: float) -> None:
        stamp = time.time() - seconds
        os.utime(path, (stamp, stamp))

    return _age


@pytest.fixture
def sample_png_bytes():
    """Minimal valid PNG for testing (1x1 white pixel)."""
    import base64

    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4"
        "nGP4z8BQDwAEgAF/pooBPQAAAABJRU5ErkJggg=="
    )
