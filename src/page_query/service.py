"""Fetch orchestration: robots check, page, navigation, document.

:class:`DocumentService` is the single entry point the query layer calls.
It composes the compliance gate, the render session and the DOM proxy
model into one operation, :meth:`DocumentService.fetch`.

The returned :class:`~page_query.dom.document.Document` keeps evaluating
against its page, so :meth:`fetch` leaves the page open.  The page is closed
when the enclosing :meth:`DocumentService.request_scope` exits; documents of
other requests stay live.  :meth:`DocumentService.aclose` shuts the browser
down at process exit::

    service = DocumentService.from_settings(get_settings())
    async with service.request_scope():
        document = await service.fetch("https://example.com/")
        heading = await document.query_selector("h1")
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog

from page_query.browser.session import RenderSession
from page_query.cache.policy_cache import build_cache
from page_query.core.exceptions import AccessDisallowedError
from page_query.dom.factory import create_document
from page_query.fetching.text_fetcher import TextFetcher
from page_query.query.options import FetchOptions, validate_url
from page_query.robots.gate import ComplianceGate

if TYPE_CHECKING:
    from page_query.config.settings import Settings
    from page_query.dom.document import Document

logger = structlog.get_logger(__name__)


class DocumentService:
    """Fetch remote pages and expose them as typed documents.

    Args:
        session: Render session that owns the browser and its pages.
        gate: robots.txt gate consulted before each fetch.
    """

    def __init__(self, session: RenderSession, gate: ComplianceGate) -> None:
        self._session = session
        self._gate = gate

    @classmethod
    def from_settings(cls, settings: Settings) -> DocumentService:
        """Wire a service, its gate, cache and session from ``settings``."""
        gate = ComplianceGate(
            fetcher=TextFetcher(),
            cache=build_cache(settings),
            ttl=settings.robots_cache_ttl,
            fetch_timeout=settings.robots_fetch_timeout,
            cache_prefix=settings.robots_cache_prefix,
            default_user_agent=settings.robots_user_agent,
        )
        return cls(RenderSession.from_settings(settings), gate)

    @property
    def session(self) -> RenderSession:
        return self._session

    async def fetch(self, url: str, options: FetchOptions | None = None) -> Document:
        """Load ``url`` in a fresh page and return its document.

        Steps: validate the URL, check robots.txt (unless
        ``options.ignore_robots_txt``), open a page, navigate, materialise
        the document.  The page stays open on success and is closed on any
        failure after it was opened.

        Args:
            url: Absolute http(s) URL.
            options: Per-request settings.  ``None`` uses the defaults.

        Returns:
            The live document of the loaded page.

        Raises:
            InvalidUrlError: If ``url`` is not an absolute http(s) URL.
            AccessDisallowedError: If robots.txt disallows ``url``.  No page
                is opened in that case.
            NavigationError: If the navigation fails.
            NodeUnavailableError: If the document cannot be read.
        """
        options = options or FetchOptions()
        validate_url(url)
        log = logger.bind(url=url)
        log.debug(
            "document.options",
            headers=options.headers,
            cookies=[cookie.to_playwright() for cookie in options.cookies],
            credentials=options.credentials,
        )

        if options.ignore_robots_txt:
            log.debug("document.robots_check_skipped")
        elif not await self._gate.is_accessible(url, options.user_agent):
            log.info("document.access_disallowed", user_agent=options.user_agent)
            raise AccessDisallowedError(url, options.user_agent)

        page = await self._session.open_page(options.to_page_options())
        try:
            response = await self._session.navigate(
                page,
                url,
                wait_until=options.wait_until,
                timeout=options.timeout,
            )
            document = await create_document(page)
        except Exception:
            await self._session.close_page(page)
            raise

        log.info("document.fetched", status=response.status, wait_until=options.wait_until.value)
        return document

    async def dispose(self) -> None:
        """Close every page of every request and the browser.  Never raises."""
        await self._session.dispose()

    async def aclose(self) -> None:
        """Dispose the session and release the gate's HTTP client and cache."""
        await self.dispose()
        await self._gate.aclose()

    @asynccontextmanager
    async def request_scope(self, request_id: str | None = None) -> AsyncIterator[DocumentService]:
        """Bind a request id to the logging context; close this request's pages on exit.

        Only pages opened inside the block are closed.  Concurrent requests
        keep their pages, and the browser stays up for the next request.
        Closing runs even if the body raised, and its failures are logged
        rather than raised.

        Args:
            request_id: Correlation id for log records.  Generated when
                omitted.
        """
        with structlog.contextvars.bound_contextvars(request_id=request_id or uuid.uuid4().hex):
            async with self._session.page_scope():
                yield self
