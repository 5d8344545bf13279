"""Policy cache backends.

- ``policy_cache`` — TTL key/value stores (Redis, in-process LRU) and key prefixing
"""

from __future__ import annotations

from page_query.cache.policy_cache import (
    InMemoryCache,
    KeyValueCache,
    PrefixingCache,
    RedisCache,
    build_cache,
)

__all__ = [
    "InMemoryCache",
    "KeyValueCache",
    "PrefixingCache",
    "RedisCache",
    "build_cache",
]
