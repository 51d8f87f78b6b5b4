"""
Chapter 1: Error taxonomy for the BLS fetch path.

InvalidRangeError is raised for bad splitter input. Everything the retrieval
client raises derives from ClientError and can be tagged with the sub-range
that was being fetched when it failed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .ranges import SubRange


class BLSError(RuntimeError):
    """Base error for the BLS fetch path."""


class InvalidRangeError(BLSError, ValueError):
    """min_year > max_year, or max_span < 1."""


class ClientError(BLSError):
    """Raised by the series retrieval client."""

    def __init__(self, message: str = "", sub_range: Optional["SubRange"] = None):
        super().__init__(message)
        self.message = message
        self.sub_range = sub_range

    def __str__(self) -> str:
        if self.sub_range is not None:
            return f"{self.message} (sub-range {self.sub_range})"
        return self.message


class AuthError(ClientError):
    pass


class RateLimitError(ClientError):
    pass


class NetworkError(ClientError):
    pass


class RangeTooLargeError(ClientError):
    """A requested year span exceeds the provider's cap."""


class APIResponseError(ClientError):
    """Non-success payload or HTTP status not covered above."""
