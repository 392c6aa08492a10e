"""YtDlpError and the error kinds it is mapped from."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories, each mapped to one HTTP response in server.py."""

    VALIDATION = "validation"
    RESOLUTION = "resolution"
    LAUNCH = "launch"
    TIMEOUT = "timeout"
    STREAM = "stream"
    VERSION = "version"


class YtDlpError(Exception):
    """Error from request validation or yt-dlp execution.

    The message is internal detail for server logs only; the response body is
    chosen from the kind.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.RESOLUTION):
        super().__init__(message)
        self.kind = kind

    def __repr__(self) -> str:
        return f"YtDlpError({str(self)!r}, kind={self.kind.value})"


def require_url(url) -> str:
    """Return url unchanged, or raise a validation error if it is missing or empty."""
    if not url:
        raise YtDlpError("url query parameter missing", kind=ErrorKind.VALIDATION)
    return url
