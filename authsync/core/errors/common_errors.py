"""Error classes shared by every layer.

Error Types:
- ValidationError: Input rejected by the server or by local validation
- ConflictError: Resource already exists (duplicate registration)
- AuthenticationError: Login, 2FA or session failures

Usage:
    from authsync.core.errors import AuthenticationError
    from authsync.core.enums import ErrorCode
    from authsync.core.result import Failure

    return Failure(error=AuthenticationError(
        code=ErrorCode.INVALID_CREDENTIALS,
        message="Invalid credentials",
        status_code=401,
    ))
"""

from dataclasses import dataclass

from authsync.core.errors.domain_error import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationError(DomainError):
    """Input validation failure.

    Attributes:
        field: Field name that failed validation, when known.
    """

    field: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictError(DomainError):
    """Resource conflict (duplicate account).

    Attributes:
        resource_type: Type of resource in conflict.
        conflicting_field: Field that has the conflict (email).
    """

    resource_type: str
    conflicting_field: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthenticationError(DomainError):
    """Authentication failure (bad credentials, 2FA, expired session).

    Attributes:
        status_code: HTTP status that produced the error, None for
            transport-level failures.
    """

    status_code: int | None = None
