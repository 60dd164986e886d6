"""
Validates HTTP round trips: a 200 status always, and an audio Content-Type for
sound downloads.
"""

import logging
from http import HTTPStatus

from http_content.exceptions import HttpStatusError, InvalidContentTypeError
from http_content.models.config import ContentSettings
from http_content.models.results import FetchOutcome

from .transport import DEFAULT_TIMEOUT, Transport

log = logging.getLogger(__name__)

AUDIO_CONTENT_TYPES = frozenset(
    {
        "audio/x-pn-wav",
        "audio/x-wav",
        "audio/wave",
        "audio/mpeg",
        "audio/wav",
        "audio/ogg",
    }
)


def status_reason(code: int) -> str | None:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return None


class Fetcher:
    """Wraps a Transport and turns unacceptable responses into typed errors."""

    def __init__(
        self,
        transport: Transport,
        timeout: float = DEFAULT_TIMEOUT,
        settings: ContentSettings | None = None,
    ):
        """
        Args:
            transport: Performs the actual requests.
            timeout: Per-request timeout in seconds, used without settings.
            settings: When given, its current fetch_timeout wins on every call.
        """
        self.transport = transport
        self.settings = settings
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        if self.settings is not None:
            return self.settings.fetch_timeout
        return self._timeout

    async def fetch(
        self, url: str, headers: dict[str, str] | None = None
    ) -> FetchOutcome:
        """
        Fetches a URL and requires a 200 response.

        Raises:
            NetworkError: If the transport fails.
            HttpStatusError: For any status other than 200.
        """
        outcome = await self.transport.fetch(url, headers or {}, self.timeout)
        if outcome.status != HTTPStatus.OK:
            log.debug(f"{url} answered with HTTP {outcome.status}")
            raise HttpStatusError(outcome.status, status_reason(outcome.status))
        return outcome

    async def fetch_audio(
        self, url: str, headers: dict[str, str] | None = None
    ) -> FetchOutcome:
        """Like fetch, but also requires an audio Content-Type."""
        outcome = await self.fetch(url, headers)
        if outcome.content_type not in AUDIO_CONTENT_TYPES:
            raise InvalidContentTypeError(outcome.header("Content-Type"))
        return outcome
