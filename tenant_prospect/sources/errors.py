"""Exception types raised by the directory and news sources."""

from typing import Optional


class SourceError(Exception):
    """Base exception for external data source errors."""
    pass


class AuthenticationError(SourceError):
    """Missing API key for a source."""
    pass


class NetworkError(SourceError):
    """Transport-level failure (connection refused, DNS, timeout...)."""
    pass


class UpstreamError(SourceError):
    """The upstream API answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(SourceError):
    """The response body did not match the expected schema."""
    pass
