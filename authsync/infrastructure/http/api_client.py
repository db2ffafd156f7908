"""REST client for the auth and user endpoints.

One long-lived httpx.AsyncClient per runtime so the cookie jar survives across
requests: the server authenticates the client through HTTP-only cookies
(accessToken / refreshToken), and the client never reads them except to
forward them on the realtime handshake.

Error contract:
    - Transport failures (timeout, connection refused) -> Failure(ApiUnavailableError)
    - Any HTTP response, including 4xx/5xx -> Success(httpx.Response)
    Status interpretation belongs to the caller; check_error_response() and
    parse_json_object() cover the common cases.

Usage:
    client = AuthApiClient(base_url="https://shop.example.com/v1")
    result = await client.request("GET", "/users/me", operation="fetch_identity")
"""

from typing import Any

import httpx

from authsync.core.constants import (
    ACCESS_TOKEN_COOKIE,
    GENERIC_ERROR_MESSAGE,
    REFRESH_TOKEN_COOKIE,
    RESPONSE_BODY_MAX_LENGTH,
)
from authsync.core.enums import ErrorCode
from authsync.core.result import Failure, Result, Success
from authsync.domain.errors import (
    ApiError,
    ApiInvalidResponseError,
    ApiRateLimitError,
    ApiUnavailableError,
)
from authsync.domain.events.realtime_messages import CredentialPair
from authsync.domain.protocols.logger_protocol import LoggerProtocol


class AuthApiClient:
    """Cookie-carrying HTTP client for the auth API.

    Attributes:
        _base_url: API base URL (without trailing slash).
        _client: Shared httpx.AsyncClient (owns the cookie jar).
        _logger: Structured logger bound to component="api_client".
    """

    def __init__(
        self,
        *,
        base_url: str,
        logger: LoggerProtocol,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL (e.g., "https://shop.example.com/v1").
            logger: Structured logger.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (httpx.MockTransport in tests).
        """
        self._base_url = base_url.rstrip("/")
        self._logger = logger.bind(component="api_client")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        operation: str,
    ) -> Result[httpx.Response, ApiError]:
        """Execute an HTTP request with transport error handling.

        Args:
            method: HTTP method (GET, POST, ...).
            path: URL path relative to base_url.
            json_data: Optional JSON body.
            params: Optional query parameters.
            operation: Operation name for logging.

        Returns:
            Success(httpx.Response): Any HTTP response.
            Failure(ApiUnavailableError): On timeout or connection error.
        """
        try:
            response = await self._client.request(
                method=method,
                url=path,
                json=json_data,
                params=params,
            )
        except httpx.TimeoutException as e:
            self._logger.warning("api_timeout", operation=operation, error=str(e))
            return Failure(
                error=ApiUnavailableError(
                    code=ErrorCode.NETWORK_TIMEOUT,
                    message="The server took too long to respond",
                )
            )
        except httpx.RequestError as e:
            self._logger.warning(
                "api_connection_error", operation=operation, error=str(e)
            )
            return Failure(
                error=ApiUnavailableError(
                    code=ErrorCode.NETWORK_UNAVAILABLE,
                    message="Unable to reach the server",
                )
            )

        self._logger.debug(
            "api_response_received",
            operation=operation,
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return Success(value=response)

    def check_error_response(
        self,
        response: httpx.Response,
        operation: str,
    ) -> Failure[ApiError] | None:
        """Map throttling and server failures to ApiError.

        Client errors other than 429 are left to the caller, who surfaces the
        server message verbatim.

        Args:
            response: HTTP response to check.
            operation: Operation name for logging.

        Returns:
            Failure(ApiError) for 429/5xx, None otherwise.
        """
        status = response.status_code

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            retry_seconds = int(retry_after) if retry_after and retry_after.isdigit() else None
            self._logger.warning(
                "api_rate_limited",
                operation=operation,
                retry_after=retry_seconds,
            )
            return Failure(
                error=ApiRateLimitError(
                    code=ErrorCode.RATE_LIMITED,
                    message="Too many requests. Please slow down.",
                    status_code=status,
                    retry_after=retry_seconds,
                )
            )

        if status >= 500:
            self._logger.warning(
                "api_server_error",
                operation=operation,
                status_code=status,
            )
            return Failure(
                error=ApiUnavailableError(
                    code=ErrorCode.SERVER_ERROR,
                    message=GENERIC_ERROR_MESSAGE,
                    status_code=status,
                )
            )

        return None

    def parse_json_object(
        self,
        response: httpx.Response,
        operation: str,
    ) -> Result[dict[str, Any], ApiError]:
        """Parse a response body as a JSON object.

        Args:
            response: HTTP response to parse.
            operation: Operation name for logging.

        Returns:
            Success(dict): Parsed JSON object (empty dict for an empty body).
            Failure(ApiInvalidResponseError): On invalid JSON or non-object.
        """
        if not response.content:
            return Success(value={})

        try:
            data = response.json()
        except ValueError as e:
            self._logger.error("api_invalid_json", operation=operation, error=e)
            return Failure(
                error=ApiInvalidResponseError(
                    code=ErrorCode.INVALID_RESPONSE,
                    message="Invalid JSON response from server",
                    status_code=response.status_code,
                    response_body=response.text[:RESPONSE_BODY_MAX_LENGTH],
                )
            )

        if not isinstance(data, dict):
            self._logger.warning(
                "api_unexpected_format",
                operation=operation,
                data_type=type(data).__name__,
            )
            return Failure(
                error=ApiInvalidResponseError(
                    code=ErrorCode.INVALID_RESPONSE,
                    message="Expected an object response from server",
                    status_code=response.status_code,
                    response_body=response.text[:RESPONSE_BODY_MAX_LENGTH],
                )
            )

        return Success(value=data)

    def adopt_credentials(self, credentials: CredentialPair) -> None:
        """Place a credential pair into the cookie jar.

        Equivalent to the server setting its HTTP-only cookies; subsequent
        requests carry them automatically.
        """
        self._client.cookies.set(ACCESS_TOKEN_COOKIE, credentials.access_token, path="/")
        self._client.cookies.set(
            REFRESH_TOKEN_COOKIE, credentials.refresh_token, path="/"
        )

    def clear_credentials(self) -> None:
        """Drop every cookie held by the client."""
        self._client.cookies.clear()

    def cookie_header(self) -> str | None:
        """Cookie header value for the realtime handshake, None if empty."""
        pairs = [f"{cookie.name}={cookie.value}" for cookie in self._client.cookies.jar]
        return "; ".join(pairs) if pairs else None

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()
