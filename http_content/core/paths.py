"""
Content addressing: derives stable, filesystem-safe cache paths from URLs.
"""

import hashlib
import re
from urllib.parse import unquote, urlsplit

DEFAULT_EXTENSION = "dat"

_TRAILING_SEPARATORS = re.compile(r"[/\\]+$")
_EXTENSION_PATTERN = re.compile(r"^[a-z0-9]{1,8}$")


def normalize_url(url: str) -> str:
    """Lower-cases a URL and strips any run of trailing slashes or backslashes."""
    return _TRAILING_SEPARATORS.sub("", url.strip().lower())


def url_filename(url: str) -> str | None:
    """
    Returns the last path segment of a URL, ignoring query and fragment.

    URLs that cannot be parsed (e.g. an unclosed IPv6 host) have no file name.
    """
    try:
        path = urlsplit(url).path if "://" in url else url.split("?", 1)[0]
    except ValueError:
        return None
    name = unquote(_TRAILING_SEPARATORS.sub("", path)).replace("\\", "/")
    name = name.rsplit("/", 1)[-1]
    return name or None


def url_extension(url: str) -> str | None:
    """
    Returns the lower-cased extension of a URL's file name, if it has a plausible one.

    >>> url_extension("https://cdn.example.com/img/Logo.PNG?v=3")
    'png'
    >>> url_extension("https://example.com/") is None
    True
    """
    name = url_filename(url)
    if not name or "." not in name:
        return None
    extension = name.rsplit(".", 1)[1].lower()
    return extension if _EXTENSION_PATTERN.match(extension) else None


def path_extension(path: str) -> str | None:
    """Extension of a store path's last segment."""
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return name.rsplit(".", 1)[1] or None


class PathResolver:
    """
    Maps (bucket, url) pairs to cache paths.

    The file name is a cryptographic digest of the normalized URL, so the same
    URL always lands on the same path across process restarts, and untrusted
    URLs cannot be crafted to collide.
    """

    def __init__(self, algorithm: str = "sha256"):
        if algorithm not in hashlib.algorithms_guaranteed:
            raise ValueError(f"Unsupported hash algorithm '{algorithm}'.")
        self.algorithm = algorithm

    def content_key(self, value: str) -> str:
        return hashlib.new(self.algorithm, value.encode("utf-8")).hexdigest()

    def resolve(
        self, bucket: str, url: str, fallback_extension: str | None = None
    ) -> str:
        """
        Returns '<bucket>/<digest>.<extension>' for a URL.

        The extension is the URL's own, else ``fallback_extension``, else 'dat'.
        """
        normalized = normalize_url(url)
        extension = (
            url_extension(normalized)
            or (fallback_extension or "").lstrip(".").lower()
            or DEFAULT_EXTENSION
        )
        filename = f"{self.content_key(normalized)}.{extension}"
        bucket = bucket.strip("/\\")
        return f"{bucket}/{filename}" if bucket else filename
