"""Core errors package.

Usage:
    from authsync.core.errors import DomainError, AuthenticationError
"""

from authsync.core.errors.common_errors import (
    AuthenticationError,
    ConflictError,
    ValidationError,
)
from authsync.core.errors.domain_error import DomainError

__all__ = [
    "DomainError",
    "ValidationError",
    "ConflictError",
    "AuthenticationError",
]
