"""
Performs single HTTP GET round trips over a shared aiohttp connection pool.
"""

import asyncio
import logging
from typing import Protocol

import aiohttp

from http_content import __version__
from http_content.exceptions import NetworkError
from http_content.models.results import FetchOutcome

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class Transport(Protocol):
    """Anything able to turn a URL into a status code, headers and a body."""

    async def fetch(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> FetchOutcome: ...

    async def close(self) -> None: ...


class AiohttpTransport:
    """
    Transport backed by one lazily created aiohttp ClientSession.

    Transport-level failures (DNS, connection reset, timeout) are surfaced as
    NetworkError; the status code is returned untouched for the caller to judge.
    """

    def __init__(self, max_connections: int = 16):
        self.max_connections = max_connections
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session and not self._session.closed:
                return self._session

            connector = aiohttp.TCPConnector(
                limit=self.max_connections,
                ttl_dns_cache=600,  # 10 minutes
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={
                    "User-Agent": f"http-content/{__version__}",
                    "Accept-Encoding": "gzip, deflate",
                },
            )
            log.debug(f"Created HTTP session with limit={self.max_connections}")
        return self._session

    async def fetch(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> FetchOutcome:
        session = await self._get_session()
        try:
            async with session.get(
                url,
                headers=headers,
                allow_redirects=True,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                body = await response.read()
                return FetchOutcome(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            reason = str(e) or type(e).__name__
            log.debug(f"Request to {url} failed: {reason}")
            raise NetworkError(f"request to {url} failed: {reason}") from e

    async def close(self) -> None:
        """Closes the underlying session."""
        async with self._session_lock:
            if self._session and not self._session.closed:
                await self._session.close()
                log.debug("HTTP session closed.")
            self._session = None
