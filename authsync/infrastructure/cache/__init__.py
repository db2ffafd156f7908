"""Response cache and key construction."""

from authsync.infrastructure.cache.cache_keys import CacheKeys
from authsync.infrastructure.cache.response_cache import ResponseCache

__all__ = ["CacheKeys", "ResponseCache"]
