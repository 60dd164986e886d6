"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class HttpContentError(Exception):
    """Base exception for all application-specific errors."""


class FetchError(HttpContentError):
    """Raised when remote content could not be obtained."""


class NetworkError(FetchError):
    """Raised when the transport fails (DNS, timeout, connection reset)."""


class HttpStatusError(FetchError):
    """Raised when the server answers with anything other than 200."""

    def __init__(self, code: int, reason: str | None = None):
        self.code = code
        self.reason = reason
        message = f"invalid response http code - {code}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ContentValidationError(HttpContentError):
    """Base class for input and response validation failures."""


class InvalidContentTypeError(ContentValidationError):
    """Raised when a response's Content-Type is not in the accepted set."""

    def __init__(self, content_type: str | None):
        self.content_type = content_type
        super().__init__(f"invalid file content ({content_type or 'no content type'})")


class InvalidFileTypeError(ContentValidationError):
    """Raised when a URL points at a file type that cannot be handled."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"invalid file type '{extension}'")


class InvalidLinkError(ContentValidationError):
    """Raised when a URL carries no usable file name or extension."""


class StorageError(HttpContentError):
    """Raised for local read, write or delete failures."""


class MountError(HttpContentError):
    """Raised when a packaged container cannot be mounted."""


class AssemblyFailedError(MountError):
    """Raised when a container could not be written or mounted after a fetch."""


class MaterialConversionError(HttpContentError):
    """Raised when downloaded image bytes cannot be turned into a material."""


class ConfigurationError(HttpContentError):
    """Raised for issues related to configuration loading or validation."""


class CorruptContainerError(MountError):
    """Raised when a container file cannot be parsed or fails its checksum."""
