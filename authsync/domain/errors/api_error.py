"""REST transport error types.

These errors are returned by the API client when a request cannot produce a
usable response. HTTP responses with a status code (including 401 and 4xx)
are NOT errors at this level; interpreting them is the caller's job.

Usage:
    from authsync.domain.errors import ApiError
    from authsync.core.result import Result

    async def request(...) -> Result[httpx.Response, ApiError]:
        ...
"""

from dataclasses import dataclass

from authsync.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class ApiError(DomainError):
    """Base REST API error.

    Attributes:
        status_code: HTTP status when a response was received, else None.
    """

    status_code: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ApiUnavailableError(ApiError):
    """API could not be reached or answered with 5xx.

    Raised when:
    - Connection refused or DNS failure
    - Request timed out
    - Server responded with 5xx

    Attributes:
        is_transient: Whether retrying later may succeed.
    """

    is_transient: bool = True


@dataclass(frozen=True, slots=True, kw_only=True)
class ApiRateLimitError(ApiError):
    """Server throttled the client (429).

    Attributes:
        retry_after: Seconds to wait before retrying, when provided.
    """

    retry_after: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ApiInvalidResponseError(ApiError):
    """Response body could not be interpreted (bad JSON, wrong shape).

    Attributes:
        response_body: Truncated body for debugging.
    """

    response_body: str | None = None
