"""Domain errors package.

Usage:
    from authsync.domain.errors import ApiError, RealtimeConnectionError
"""

from authsync.domain.errors.api_error import (
    ApiError,
    ApiInvalidResponseError,
    ApiRateLimitError,
    ApiUnavailableError,
)
from authsync.domain.errors.realtime_connection_error import RealtimeConnectionError

__all__ = [
    "ApiError",
    "ApiInvalidResponseError",
    "ApiRateLimitError",
    "ApiUnavailableError",
    "RealtimeConnectionError",
]
