"""
Network Layer.

This package performs HTTP requests and validates their responses.
"""

from .fetcher import AUDIO_CONTENT_TYPES, Fetcher
from .transport import AiohttpTransport, Transport

__all__ = ["AUDIO_CONTENT_TYPES", "AiohttpTransport", "Fetcher", "Transport"]
