"""Result types for railway-oriented programming.

Session, connection and request operations report failure as data instead of
raising, so callers on the UI side never need a try/except around them.

Usage:
    result = await session_manager.login(email, password)
    if isinstance(result, Failure):
        show_error(result.error.message)
    else:
        outcome = result.value
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Successful outcome.

    Attributes:
        value: The produced value.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Failed outcome.

    Attributes:
        error: Error describing what went wrong (usually a DomainError).
    """

    error: E


type Result[T, E] = Success[T] | Failure[E]
