"""Response cache protocol (port).

Short-TTL memoization of idempotent reads. Pure data structure: no network
awareness, keys are built by the caller.

Implementations:
    - ResponseCache: authsync/infrastructure/cache/response_cache.py
"""

from typing import Any, Protocol


class ResponseCacheProtocol(Protocol):
    """Protocol for the response cache."""

    def get(self, key: str) -> Any | None:
        """Return the payload if younger than the TTL, else None."""
        ...

    def set(self, key: str, payload: Any) -> None:
        """Store a payload stamped with the current time."""
        ...

    def invalidate(self, pattern: str | None = None) -> int:
        """Remove entries whose key contains pattern, or all entries.

        Returns:
            Number of entries removed.
        """
        ...
