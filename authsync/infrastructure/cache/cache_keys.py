"""Cache key construction utilities.

Request keys identify a read by URL plus options, so two consumers issuing the
same GET share one entry while different query strings stay separate.

Pattern: {METHOD} {path}?{sorted query}

Usage:
    keys = CacheKeys()
    key = keys.request("GET", "/users/me")                 # "GET /users/me"
    key = keys.request("GET", "/orders", {"page": 2})     # "GET /orders?page=2"
    pattern = keys.invalidation_pattern("/users/me/preferences")  # "/users/me"
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode, urlsplit


@dataclass
class CacheKeys:
    """Centralized cache key construction utilities."""

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> str:
        """Request cache key.

        Args:
            method: HTTP verb.
            path: Request path relative to the API base URL.
            params: Optional query parameters (order-insensitive).

        Returns:
            Cache key string.
        """
        key = f"{method.upper()} {path}"
        if params:
            key = f"{key}?{urlencode(sorted(params.items()), doseq=True)}"
        return key

    def invalidation_pattern(self, path: str) -> str:
        """Substring that matches every cached read of the mutated resource.

        A write to a sub-resource invalidates its parent resource too
        ("/users/me/preferences" -> "/users/me"). Single-segment paths
        invalidate themselves.

        Args:
            path: Path of the mutating request.

        Returns:
            Pattern for ResponseCache.invalidate().
        """
        clean = urlsplit(path).path.rstrip("/") or "/"
        parent, _, _ = clean.rpartition("/")
        return parent if parent else clean
