"""robots.txt compliance gate.

Answers "may this agent fetch this URL?" by fetching, caching and parsing
the origin's robots.txt.  The gate fails open: if the policy cannot be
fetched, an empty body is cached for the normal TTL and every URL on that
origin is allowed until the entry expires.
"""

from __future__ import annotations

import logging

from page_query.cache.policy_cache import KeyValueCache, PrefixingCache
from page_query.core.exceptions import NetworkError
from page_query.core.metrics import robots_cache_lookups_total, robots_checks_total
from page_query.fetching.text_fetcher import TextFetcher
from page_query.robots.policy import RobotsPolicy, build_policy_url

logger = logging.getLogger(__name__)

#: Prefix separating policy entries from other keys in a shared store.
CACHE_KEY_PREFIX: str = "robotstxt:"

#: Lifetime of a cached policy body, including negative entries (seconds).
CACHE_TTL: int = 1800

#: Timeout for a single robots.txt download (seconds).
FETCH_TIMEOUT: float = 2.0


class ComplianceGate:
    """Fetch, cache and evaluate robots.txt policies.

    Args:
        fetcher: Text fetcher used on cache misses.
        cache: Backing key/value store.  Keys are prefixed with
            ``cache_prefix`` before they reach it.
        ttl: Cache lifetime of each policy body in seconds.
        fetch_timeout: Timeout for robots.txt downloads in seconds.
        cache_prefix: Key namespace within ``cache``.
        default_user_agent: Agent evaluated when the caller supplies none.
    """

    def __init__(
        self,
        fetcher: TextFetcher,
        cache: KeyValueCache,
        ttl: int = CACHE_TTL,
        fetch_timeout: float = FETCH_TIMEOUT,
        cache_prefix: str = CACHE_KEY_PREFIX,
        default_user_agent: str | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._cache = PrefixingCache(cache, cache_prefix)
        self._ttl = ttl
        self._fetch_timeout = fetch_timeout
        self._default_user_agent = default_user_agent

    async def is_accessible(self, url: str, user_agent: str | None = None) -> bool:
        """Return ``True`` if robots.txt lets ``user_agent`` fetch ``url``.

        Never raises for fetch problems: an unreachable or failing robots.txt
        counts as an empty policy.

        Args:
            url: Absolute URL the caller wants to load.
            user_agent: Agent to evaluate.  Falls back to the gate's default.
        """
        policy = await self.get_policy(url)
        agent = user_agent or self._default_user_agent
        allowed = policy.is_allowed(url, agent)
        robots_checks_total.labels(result="allowed" if allowed else "disallowed").inc()
        if not allowed:
            logger.info("robots: %s disallowed for agent '%s'", url, agent or "*")
        return allowed

    async def get_policy(self, url: str) -> RobotsPolicy:
        """Return the parsed policy for the origin of ``url``.

        Args:
            url: Any absolute URL on the origin.

        Returns:
            The origin's :class:`~page_query.robots.policy.RobotsPolicy`.
        """
        policy_url = build_policy_url(url)
        text = await self._fetch_text(policy_url)
        return RobotsPolicy.parse(text, policy_url)

    async def _fetch_text(self, policy_url: str) -> str:
        """Return the robots.txt body for ``policy_url``, from cache when possible.

        An empty cached body is a hit (a previous fetch failed), not a miss.
        """
        cached = await self._cache.get(policy_url)
        if cached is not None:
            robots_cache_lookups_total.labels(
                result="hit" if cached else "negative_hit"
            ).inc()
            logger.info("robots: retrieved cached policy for %s", policy_url)
            return cached

        robots_cache_lookups_total.labels(result="miss").inc()
        try:
            fetched = await self._fetcher.fetch(policy_url, self._fetch_timeout)
        except NetworkError as exc:
            logger.warning("robots: failed to fetch %s: %s; caching empty policy", policy_url, exc)
            await self._cache.set(policy_url, "", self._ttl)
            return ""

        await self._cache.set(policy_url, fetched, self._ttl)
        return fetched

    async def aclose(self) -> None:
        """Release the fetcher's HTTP client and the cache backend."""
        await self._fetcher.aclose()
        await self._cache.close()
