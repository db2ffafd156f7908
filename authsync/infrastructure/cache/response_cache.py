"""In-memory response cache with a fixed TTL.

Short-lived memoization of idempotent reads, backed by cachetools.TTLCache.
Pure data structure: no network awareness, no background eviction. Expired
entries are treated as absent and purged on access.

Usage:
    cache = ResponseCache(ttl_seconds=30.0)
    cache.set("GET /users/me", response)
    cached = cache.get("GET /users/me")   # response, or None after 30s
    cache.invalidate("/users/me")          # drop every key containing it
    cache.invalidate()                     # drop everything
"""

import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache

DEFAULT_MAX_ENTRIES = 512


class ResponseCache:
    """TTL cache keyed by request identity.

    Implements ResponseCacheProtocol. When full, the least recently used
    entry is evicted first.

    Attributes:
        _ttl: Lifetime of an entry in seconds.
        _entries: TTLCache of key -> payload, timed by the injected clock.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 30.0,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._entries: TTLCache[str, Any] = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=clock
        )

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Any | None:
        """Return the payload if younger than the TTL, else None."""
        self._entries.expire()
        return self._entries.get(key)

    def set(self, key: str, payload: Any) -> None:
        """Store payload stamped with the current time (overwrites)."""
        self._entries[key] = payload

    def invalidate(self, pattern: str | None = None) -> int:
        """Remove entries whose key contains pattern, or all entries.

        Args:
            pattern: Substring to match. None clears the whole cache.

        Returns:
            Number of entries removed.
        """
        self._entries.expire()
        if pattern is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed

        doomed = [key for key in list(self._entries) if pattern in key]
        for key in doomed:
            self._entries.pop(key, None)
        return len(doomed)

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
