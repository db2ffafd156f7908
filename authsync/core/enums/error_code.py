"""Machine-readable error codes.

Error codes follow ENTITY_ACTION_REASON naming where it reads naturally.

Categories:
- Validation errors (INVALID_*, VALIDATION_*)
- Conflict errors (*_ALREADY_EXISTS)
- Authentication errors (INVALID_CREDENTIALS, EMAIL_NOT_VERIFIED, ...)
- Transport errors (NETWORK_*, SERVER_ERROR, RATE_LIMITED)
- Realtime connection errors (CONNECTION_*, CIRCUIT_OPEN)
"""

from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes."""

    # Validation errors
    INVALID_EMAIL = "invalid_email"
    VALIDATION_FAILED = "validation_failed"

    # Conflict errors
    USER_ALREADY_EXISTS = "user_already_exists"

    # Authentication errors
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_VERIFIED = "email_not_verified"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_DEACTIVATED = "account_deactivated"
    TWO_FACTOR_CODE_INVALID = "two_factor_code_invalid"
    NOT_AUTHENTICATED = "not_authenticated"
    AUTHENTICATION_FAILED = "authentication_failed"

    # Transport errors
    NETWORK_UNAVAILABLE = "network_unavailable"
    NETWORK_TIMEOUT = "network_timeout"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    INVALID_RESPONSE = "invalid_response"
    REQUEST_FAILED = "request_failed"

    # Realtime connection errors
    CONNECTION_FAILED = "connection_failed"
    CONNECTION_NOT_INITIALIZED = "connection_not_initialized"
    CONNECTION_CLOSED = "connection_closed"
    CIRCUIT_OPEN = "circuit_open"
