"""Async plain-text fetcher.

Performs a single timed ``GET`` with ``httpx`` and returns the decoded body.
There is no caching and no policy logic here; the compliance gate layers
both on top.  Any failure (transport error, timeout, non-2xx status) is
reported as :class:`~page_query.core.exceptions.NetworkError`.
"""

from __future__ import annotations

import logging

import httpx

from page_query.core.exceptions import NetworkError

logger = logging.getLogger(__name__)

#: User-agent string sent with every text request.
USER_AGENT: str = "page-query/1.0 (+https://github.com/page-query/page-query)"

_STATUS_SUCCESS = 200
_STATUS_REDIRECTION = 300


class TextFetcher:
    """Fetch text documents over HTTP.

    Args:
        client: Shared :class:`httpx.AsyncClient`.  When ``None`` the fetcher
            creates and owns one, closed by :meth:`aclose`.
        user_agent: Default ``User-Agent`` header.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self._user_agent = user_agent

    async def fetch(
        self,
        url: str,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> str:
        """Fetch ``url`` and return its body as text.

        Redirects are followed.  Only a final ``2xx`` status counts as success.

        Args:
            url: Absolute URL to fetch.
            timeout: Request timeout in seconds.  Must not be negative.
            headers: Extra request headers.  They override the default
                ``User-Agent``.

        Returns:
            The decoded response body.

        Raises:
            ValueError: If ``timeout`` is negative.
            NetworkError: On any transport failure or a non-2xx status.
        """
        if timeout < 0:
            raise ValueError(f"Timeout must not be negative: timeout={timeout}")

        request_headers = {"User-Agent": self._user_agent, **(headers or {})}
        logger.info("fetcher: fetching text from %s", url)
        try:
            response = await self._client.get(
                url,
                timeout=timeout,
                follow_redirects=True,
                headers=request_headers,
            )
        except httpx.TimeoutException as exc:
            logger.warning("fetcher: timeout fetching %s", url)
            raise NetworkError(f"Timed out fetching text from {url}", url=url) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("fetcher: request error for %s: %s", url, exc)
            raise NetworkError(f"Failed to fetch text from {url}: {exc}", url=url) from exc

        logger.info(
            "fetcher: received response %d %s from %s",
            response.status_code,
            response.reason_phrase,
            url,
        )
        if not _STATUS_SUCCESS <= response.status_code < _STATUS_REDIRECTION:
            raise NetworkError(
                f"Failed to fetch text from {url}: HTTP {response.status_code}",
                url=url,
            )
        return response.text

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
