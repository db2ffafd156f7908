"""Unit tests for ResponseCache and CacheKeys.

Tests cover:
- TTL expiry driven by an injected clock
- Overwrite semantics of set()
- Pattern and full invalidation
- Request key construction and parent-path invalidation patterns
"""

import pytest

from authsync.infrastructure.cache import CacheKeys, ResponseCache
from tests.conftest import ManualClock


@pytest.mark.unit
class TestResponseCacheTtl:
    """Entries live for exactly the TTL."""

    def test_get_returns_payload_within_ttl(self):
        clock = ManualClock()
        cache = ResponseCache(ttl_seconds=30.0, clock=clock)

        cache.set("GET /users/me", {"id": "u1"})
        clock.advance(29.9)

        assert cache.get("GET /users/me") == {"id": "u1"}

    def test_entry_expires_at_ttl(self):
        """An entry as old as the TTL is treated as absent and dropped."""
        clock = ManualClock()
        cache = ResponseCache(ttl_seconds=30.0, clock=clock)
        cache.set("GET /users/me", {"id": "u1"})

        clock.advance(30.0)

        assert cache.get("GET /users/me") is None
        assert len(cache) == 0

    def test_set_overwrites_and_restamps(self):
        clock = ManualClock()
        cache = ResponseCache(ttl_seconds=30.0, clock=clock)
        cache.set("GET /orders", "old")
        clock.advance(20.0)

        cache.set("GET /orders", "new")
        clock.advance(20.0)

        assert cache.get("GET /orders") == "new"

    def test_missing_key_returns_none(self):
        assert ResponseCache().get("GET /nothing") is None

    def test_full_cache_evicts_least_recently_used(self):
        cache = ResponseCache(ttl_seconds=30.0, max_entries=2)
        cache.set("GET /a", 1)
        cache.set("GET /b", 2)
        cache.get("GET /a")

        cache.set("GET /c", 3)

        assert cache.get("GET /a") == 1
        assert cache.get("GET /b") is None
        assert len(cache) == 2

    def test_expired_entries_not_counted_or_invalidated(self):
        clock = ManualClock()
        cache = ResponseCache(ttl_seconds=30.0, clock=clock)
        cache.set("GET /users/me", 1)
        clock.advance(31.0)

        assert len(cache) == 0
        assert cache.invalidate("/users/me") == 0

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            ResponseCache(ttl_seconds=0)


@pytest.mark.unit
class TestResponseCacheInvalidation:
    """Pattern and full invalidation."""

    def test_invalidate_pattern_removes_matching_keys_only(self):
        cache = ResponseCache()
        cache.set("GET /users/me", 1)
        cache.set("GET /users/me/preferences", 2)
        cache.set("GET /loyalty/me", 3)

        removed = cache.invalidate("/users/me")

        assert removed == 2
        assert "GET /loyalty/me" in cache
        assert "GET /users/me" not in cache

    def test_invalidate_without_pattern_clears_everything(self):
        cache = ResponseCache()
        cache.set("GET /a", 1)
        cache.set("GET /b", 2)

        assert cache.invalidate() == 2
        assert len(cache) == 0


@pytest.mark.unit
class TestCacheKeys:
    """Request identity and invalidation patterns."""

    def test_request_key_includes_method_and_path(self):
        assert CacheKeys().request("get", "/users/me") == "GET /users/me"

    def test_query_parameters_are_order_insensitive(self):
        keys = CacheKeys()

        first = keys.request("GET", "/orders", {"page": 2, "limit": 10})
        second = keys.request("GET", "/orders", {"limit": 10, "page": 2})

        assert first == second == "GET /orders?limit=10&page=2"

    def test_different_query_strings_are_distinct(self):
        keys = CacheKeys()

        assert keys.request("GET", "/orders", {"page": 1}) != keys.request(
            "GET", "/orders", {"page": 2}
        )

    @pytest.mark.parametrize(
        ("path", "pattern"),
        [
            ("/users/me/preferences", "/users/me"),
            ("/users/me", "/users"),
            ("/orders/", "/orders"),
            ("/loyalty/me?x=1", "/loyalty"),
        ],
    )
    def test_invalidation_pattern_is_parent_path(self, path, pattern):
        assert CacheKeys().invalidation_pattern(path) == pattern
