"""External data sources (business directory and news search)."""

from .errors import (
    SourceError,
    AuthenticationError,
    NetworkError,
    UpstreamError,
    DecodeError,
)
from .directory import DirectoryClient, count_exact_matches
from .news import NewsClient

__all__ = [
    "DirectoryClient",
    "NewsClient",
    "count_exact_matches",
    "SourceError",
    "AuthenticationError",
    "NetworkError",
    "UpstreamError",
    "DecodeError",
]
