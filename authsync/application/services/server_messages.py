"""Interpretation of server error responses.

Client errors (4xx with a message) are surfaced verbatim so the UI can show
exactly what the server said; the known messages additionally get a precise
ErrorCode so callers can branch without string matching. Server errors never
leak their text.
"""

from typing import Any

import httpx

from authsync.core.constants import GENERIC_ERROR_MESSAGE
from authsync.core.enums import ErrorCode
from authsync.core.errors import (
    AuthenticationError,
    ConflictError,
    DomainError,
    ValidationError,
)
from authsync.domain.errors import ApiRateLimitError, ApiUnavailableError

KNOWN_SERVER_MESSAGES: dict[str, ErrorCode] = {
    "Invalid credentials": ErrorCode.INVALID_CREDENTIALS,
    "Email not verified": ErrorCode.EMAIL_NOT_VERIFIED,
    "Account temporarily locked due to too many failed attempts": ErrorCode.ACCOUNT_LOCKED,
    "Account is deactivated": ErrorCode.ACCOUNT_DEACTIVATED,
    "Invalid 2FA code": ErrorCode.TWO_FACTOR_CODE_INVALID,
    "Invalid TOTP code": ErrorCode.TWO_FACTOR_CODE_INVALID,
    "Invalid code": ErrorCode.TWO_FACTOR_CODE_INVALID,
    "User with this email already exists": ErrorCode.USER_ALREADY_EXISTS,
    "Email address is already in use by another account": ErrorCode.USER_ALREADY_EXISTS,
    "Invalid refresh token": ErrorCode.NOT_AUTHENTICATED,
    "No refresh token provided": ErrorCode.NOT_AUTHENTICATED,
}


def extract_message(body: Any) -> str | None:
    """Pull a displayable message out of an error body.

    Handles {"message": "..."}, {"message": ["...", "..."]} (validation
    errors) and {"error": "..."}.
    """
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, list):
        parts = [str(item) for item in message if item]
        return "; ".join(parts) if parts else None
    if isinstance(message, str) and message:
        return message
    error = body.get("error")
    return error if isinstance(error, str) and error else None


def error_from_response(
    response: httpx.Response,
    *,
    fallback_message: str,
) -> DomainError:
    """Build the DomainError for a non-2xx response.

    Args:
        response: The failed response.
        fallback_message: Message when the body carries none.

    Returns:
        - 429: ApiRateLimitError
        - 5xx: ApiUnavailableError with a generic message
        - 409 or a known "already exists" message: ConflictError
        - 400/422: ValidationError with the server message
        - any other 4xx: AuthenticationError with the server message
          (NOT_AUTHENTICATED for an unrecognized 401)
    """
    status = response.status_code

    if status >= 500:
        return ApiUnavailableError(
            code=ErrorCode.SERVER_ERROR,
            message=GENERIC_ERROR_MESSAGE,
            status_code=status,
        )

    try:
        body = response.json() if response.content else None
    except ValueError:
        body = None
    message = extract_message(body) or fallback_message
    known_code = KNOWN_SERVER_MESSAGES.get(message)

    if status == 429:
        retry_after = response.headers.get("Retry-After")
        return ApiRateLimitError(
            code=ErrorCode.RATE_LIMITED,
            message=message,
            status_code=status,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        )

    if status == 409 or known_code == ErrorCode.USER_ALREADY_EXISTS:
        return ConflictError(
            code=ErrorCode.USER_ALREADY_EXISTS,
            message=message,
            resource_type="user",
            conflicting_field="email",
        )

    if status in (400, 422) and known_code is None:
        return ValidationError(code=ErrorCode.VALIDATION_FAILED, message=message)

    if known_code is None:
        known_code = (
            ErrorCode.NOT_AUTHENTICATED if status == 401 else ErrorCode.AUTHENTICATION_FAILED
        )
    return AuthenticationError(
        code=known_code,
        message=message,
        status_code=status,
    )
