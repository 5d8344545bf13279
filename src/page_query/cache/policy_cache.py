"""TTL key/value stores for cached robots.txt bodies.

Two backends share the :class:`KeyValueCache` interface:

- :class:`RedisCache` — ``redis.asyncio`` with per-key expiry (``SETEX``),
  shared between processes.
- :class:`InMemoryCache` — a bounded in-process LRU with per-entry expiry,
  used when no Redis URL is configured.

:class:`PrefixingCache` wraps either backend and namespaces every key, so
policy entries cannot collide with unrelated data in the same store.

A value of ``""`` is a real entry, distinct from a miss (``None``).  The
compliance gate relies on this to record failed fetches.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import TYPE_CHECKING

import redis.asyncio as aioredis
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from page_query.config.settings import Settings

logger = logging.getLogger(__name__)

#: Default capacity of the in-process cache.
DEFAULT_MAX_ENTRIES: int = 1024


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class KeyValueCache(ABC):
    """Async string key/value store with per-entry TTL."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or ``None`` if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store ``value`` under ``key``, expiring after ``ttl`` seconds when given."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    async def close(self) -> None:
        """Release backend resources.  No-op by default."""
        return None


# ---------------------------------------------------------------------------
# In-process backend
# ---------------------------------------------------------------------------


class InMemoryCache(KeyValueCache):
    """Bounded LRU cache with per-entry expiry.

    Expiry is checked lazily on read.  When ``max_entries`` is exceeded the
    least recently used entry is evicted.

    Args:
        max_entries: Maximum number of live entries.
        clock: Monotonic time source in seconds.  Injected in tests.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock=time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive: max_entries={max_entries}")
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[str, float | None]] = OrderedDict()

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (value, expires_at)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("cache: evicted least recently used key '%s'", evicted)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisCache(KeyValueCache):
    """Redis-backed cache.

    Connection and command errors are logged and degrade to a miss (for
    reads) or a no-op (for writes); a cache outage never fails a request.

    Args:
        redis_url: Redis connection URL, e.g. ``redis://localhost:6379/0``.
        client: Pre-built ``redis.asyncio.Redis`` client.  Takes precedence
            over ``redis_url``; used in tests.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        client: aioredis.Redis | None = None,
    ) -> None:
        if client is None and redis_url is None:
            raise ValueError("Either redis_url or client must be given")
        self._redis_url = redis_url
        self._client = client

    def _get_client(self) -> aioredis.Redis:
        """Return the (lazily created) async Redis client."""
        if self._client is None:
            self._client = aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def get(self, key: str) -> str | None:
        try:
            return await self._get_client().get(key)
        except RedisError as exc:
            logger.warning("cache: Redis get failed for key '%s': %s", key, exc)
            return None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            client = self._get_client()
            if ttl is None:
                await client.set(key, value)
            else:
                await client.setex(key, ttl, value)
        except RedisError as exc:
            logger.warning("cache: Redis set failed for key '%s': %s", key, exc)

    async def delete(self, key: str) -> None:
        try:
            await self._get_client().delete(key)
        except RedisError as exc:
            logger.warning("cache: Redis delete failed for key '%s': %s", key, exc)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# ---------------------------------------------------------------------------
# Key prefixing
# ---------------------------------------------------------------------------


class PrefixingCache(KeyValueCache):
    """Namespace every key of a wrapped cache with a fixed prefix.

    Args:
        wrapped: The backing cache.
        prefix: String prepended to every key, e.g. ``"robotstxt:"``.
    """

    def __init__(self, wrapped: KeyValueCache, prefix: str) -> None:
        self._wrapped = wrapped
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    async def get(self, key: str) -> str | None:
        return await self._wrapped.get(self._prefix + key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        await self._wrapped.set(self._prefix + key, value, ttl)

    async def delete(self, key: str) -> None:
        await self._wrapped.delete(self._prefix + key)

    async def close(self) -> None:
        await self._wrapped.close()


def build_cache(settings: Settings) -> KeyValueCache:
    """Return the cache backend selected by ``settings``.

    Args:
        settings: Application settings; ``redis_url`` selects Redis.

    Returns:
        A :class:`RedisCache` when ``settings.redis_url`` is set, otherwise an
        :class:`InMemoryCache`.
    """
    if settings.redis_url:
        logger.info("cache: using Redis policy cache")
        return RedisCache(redis_url=settings.redis_url)
    logger.info("cache: using in-process policy cache")
    return InMemoryCache()
