"""
Shared error types for the codecs and the placement-rule client.
"""

from typing import Optional


class PlacementError(Exception):
    """Base class for every error raised by this package."""


class EncodingViolation(PlacementError, ValueError):
    """Raised when the caller passes data that cannot be represented."""


class DecodeError(PlacementError, ValueError):
    """Raised when bytes or a response body do not match any known form."""


class MalformedEntry(DecodeError):
    """Raised when a modification log entry has an unknown tag or length."""


class RemoteError(PlacementError, RuntimeError):
    """Raised on a non-success HTTP status or a transport failure."""

    def __init__(
        self,
        message: str,
        method: str = "",
        url: str = "",
        status_code: Optional[int] = None,
        reason: str = "",
        body: str = "",
    ):
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.reason = reason
        self.body = body
