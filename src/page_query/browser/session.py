"""Lifecycle of the shared browser and its per-request pages.

One :class:`RenderSession` owns at most one Chromium instance, launched
lazily on the first :meth:`~RenderSession.acquire`.  Each request gets its
own page in a fresh browser context, so cookies, storage, user agent and
script settings never leak between requests.  All pages share the browser.

Pages opened inside :meth:`RenderSession.page_scope` belong to that scope
and are closed when it exits; pages of other scopes, and the browser, are
left alone.  :meth:`RenderSession.dispose` is the process-level teardown.

State machine::

    UNINITIALIZED ──acquire()──▶ CONNECTING ──launch ok──▶ READY
          ▲                          │                       │
          └──────launch failed───────┘                   dispose()
                                                             ▼
    DISPOSED ◀───────────────────────────────────────── DISPOSING

A ``DISPOSED`` session may be acquired again; it launches a new browser.

Concurrent :meth:`~RenderSession.acquire` calls during ``CONNECTING`` all
await the same launch task.  The event loop is single-threaded, so the
check-and-set of that task needs no lock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from enum import Enum
from typing import TYPE_CHECKING

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Response, Route, async_playwright

from page_query.browser.errors import translate_error
from page_query.browser.idle import NetworkIdleWatcher
from page_query.browser.options import PageOptions, WaitCondition
from page_query.core.exceptions import NoResponseError
from page_query.core.metrics import (
    browser_launches_total,
    page_navigation_duration_seconds,
    page_navigation_errors_total,
    page_navigations_total,
    status_class,
)

if TYPE_CHECKING:
    from page_query.config.settings import Settings

logger = logging.getLogger(__name__)

#: Default timeout for evaluations on a page (seconds).
DEFAULT_TIMEOUT: float = 50.0

#: Default timeout for navigations on a page (seconds).
DEFAULT_NAVIGATION_TIMEOUT: float = 50.0

#: Resource types aborted when request interception is enabled.
IGNORED_RESOURCE_TYPES: frozenset[str] = frozenset({"font", "image", "media", "stylesheet"})

_STATUS_OK = 200
_STATUS_MULTIPLE_CHOICES = 300

Launcher = Callable[[], Awaitable[Browser]]

# Pages opened by the current page scope; tasks spawned inside it share the list.
_scope_pages: ContextVar[list[Page] | None] = ContextVar("scope_pages", default=None)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    DISPOSING = "disposing"
    DISPOSED = "disposed"


def _ms(seconds: float) -> float:
    return seconds * 1000


class RenderSession:
    """Shared browser connection plus the pages opened on it.

    Args:
        executable_path: Chromium binary.  ``None`` uses Playwright's build.
        headless: Launch without a window.  Interception needs headless mode.
        args: Extra Chromium command-line flags.
        default_timeout: Evaluation timeout applied to every page (seconds).
        default_navigation_timeout: Navigation timeout applied to every page
            (seconds).
        intercept_requests: Abort requests for ``blocked_resource_types`` by
            default.  Pages may override it through
            :attr:`PageOptions.intercept_requests`.
        blocked_resource_types: Playwright resource types to abort.
        launcher: Coroutine function returning a connected ``Browser``.
            Replaces the built-in Chromium launch; used in tests and for
            connecting to remote browsers.
    """

    def __init__(
        self,
        executable_path: str | None = None,
        headless: bool = True,
        args: Iterable[str] = (),
        default_timeout: float = DEFAULT_TIMEOUT,
        default_navigation_timeout: float = DEFAULT_NAVIGATION_TIMEOUT,
        intercept_requests: bool = False,
        blocked_resource_types: Iterable[str] = IGNORED_RESOURCE_TYPES,
        launcher: Launcher | None = None,
    ) -> None:
        self._executable_path = executable_path
        self._headless = headless
        self._args = list(args)
        self._default_timeout = default_timeout
        self._default_navigation_timeout = default_navigation_timeout
        self._intercept_requests = intercept_requests
        self._blocked_resource_types = frozenset(blocked_resource_types)
        self._launcher = launcher

        self._state = SessionState.UNINITIALIZED
        self._pending: asyncio.Future[Browser] | None = None
        self._browser: Browser | None = None
        self._playwright: Playwright | None = None
        self._pages: list[Page] = []
        self._navigation_timeouts: dict[Page, float] = {}

    @classmethod
    def from_settings(cls, settings: Settings, launcher: Launcher | None = None) -> RenderSession:
        """Build a session from application settings."""
        return cls(
            executable_path=settings.browser_executable_path,
            headless=settings.browser_headless,
            args=settings.browser_args,
            default_timeout=settings.default_timeout,
            default_navigation_timeout=settings.default_navigation_timeout,
            intercept_requests=settings.intercept_requests,
            blocked_resource_types=settings.blocked_resource_types,
            launcher=launcher,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pages(self) -> list[Page]:
        """Pages opened through this session and not yet closed."""
        return list(self._pages)

    # ------------------------------------------------------------------
    # Browser
    # ------------------------------------------------------------------

    async def acquire(self) -> Browser:
        """Return the browser, launching it on first use.

        Callers arriving while a launch is in flight await that launch; a
        failed launch is forgotten so the next call retries.
        """
        if self._browser is not None:
            return self._browser
        if self._pending is None:
            self._state = SessionState.CONNECTING
            self._pending = asyncio.ensure_future(self._connect())
        # shield: one cancelled caller must not cancel the launch for the others.
        return await asyncio.shield(self._pending)

    async def _connect(self) -> Browser:
        logger.info("browser: launching browser (headless=%s)", self._headless)
        try:
            if self._launcher is not None:
                browser = await self._launcher()
            else:
                browser = await self._launch_chromium()
        except Exception as exc:
            browser_launches_total.labels(result="failure").inc()
            logger.warning("browser: failed to launch browser: %s", exc)
            self._pending = None
            self._state = SessionState.UNINITIALIZED
            raise
        browser_launches_total.labels(result="success").inc()
        self._browser = browser
        self._state = SessionState.READY
        logger.info("browser: browser is ready")
        return browser

    async def _launch_chromium(self) -> Browser:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                executable_path=self._executable_path,
                headless=self._headless,
                args=self._args,
            )
        except Exception:
            await playwright.stop()
            raise
        self._playwright = playwright
        return browser

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def open_page(self, options: PageOptions | None = None) -> Page:
        """Open an isolated page configured by ``options``.

        Configuration order: user agent and script toggle (context creation),
        evaluation and navigation timeouts, cookies, then request interception
        when enabled.

        Args:
            options: Per-request page settings.  ``None`` uses the defaults.

        Returns:
            A blank page ready for :meth:`navigate`.
        """
        options = options or PageOptions()
        browser = await self.acquire()
        context = await browser.new_context(**options.context_kwargs())
        try:
            page = await context.new_page()
            timeout = options.timeout if options.timeout is not None else self._default_timeout
            navigation_timeout = (
                options.navigation_timeout
                if options.navigation_timeout is not None
                else self._default_navigation_timeout
            )
            page.set_default_timeout(_ms(timeout))
            page.set_default_navigation_timeout(_ms(navigation_timeout))
            if options.cookies:
                await context.add_cookies(options.cookies)
            if self._should_intercept(options):
                await page.route("**/*", self._intercept)
        except Exception:
            await self._close_context(context, "<new page>")
            raise

        self._pages.append(page)
        self._navigation_timeouts[page] = navigation_timeout
        scoped = _scope_pages.get()
        if scoped is not None:
            scoped.append(page)
        logger.debug("browser: opened page (%d open)", len(self._pages))
        return page

    def _should_intercept(self, options: PageOptions) -> bool:
        enabled = (
            options.intercept_requests
            if options.intercept_requests is not None
            else self._intercept_requests
        )
        return enabled and self._headless

    async def _intercept(self, route: Route) -> None:
        request = route.request
        if request.resource_type in self._blocked_resource_types:
            await route.abort("aborted")
        else:
            await route.continue_()

    async def navigate(
        self,
        page: Page,
        url: str,
        wait_until: WaitCondition = WaitCondition.LOAD,
        timeout: float | None = None,
    ) -> Response:
        """Load ``url`` into ``page`` and wait for ``wait_until``.

        Non-2xx statuses are logged and returned; deciding whether they are
        a problem is up to the caller.

        Args:
            page: A page returned by :meth:`open_page`.
            url: Absolute URL to load.
            wait_until: When the navigation counts as finished.
            timeout: Navigation timeout in seconds.  ``None`` uses the page's.

        Returns:
            The main resource response.

        Raises:
            NoResponseError: If the navigation produced no response.
            PageQueryError: Any failure, classified by
                :func:`~page_query.browser.errors.translate_error`.
        """
        started = time.monotonic()
        try:
            response = await self._goto(page, url, wait_until, timeout)
        except Exception as exc:
            error = translate_error(exc, url)
            page_navigation_errors_total.labels(kind=error.kind).inc()
            logger.warning("browser: failed to navigate to %s: %s", url, exc)
            if error is exc:
                raise
            raise error from exc
        finally:
            page_navigation_duration_seconds.observe(time.monotonic() - started)

        if response is None:
            page_navigation_errors_total.labels(kind=NoResponseError.kind).inc()
            logger.warning("browser: received no response from %s", url)
            raise NoResponseError(f"Received no response from {url}", url=url)

        status = response.status
        page_navigations_total.labels(status_class=status_class(status)).inc()
        if _STATUS_OK <= status < _STATUS_MULTIPLE_CHOICES:
            logger.info("browser: received successful status %d from %s", status, url)
        else:
            logger.warning("browser: received non-successful status %d from %s", status, url)
        return response

    async def _goto(
        self,
        page: Page,
        url: str,
        wait_until: WaitCondition,
        timeout: float | None,
    ) -> Response | None:
        timeout_ms = _ms(timeout) if timeout is not None else None
        max_inflight = wait_until.max_inflight
        if max_inflight is None:
            return await page.goto(url, wait_until=wait_until.value, timeout=timeout_ms)
        if max_inflight == 0:
            return await page.goto(url, wait_until="networkidle", timeout=timeout_ms)

        # Playwright has no "at most N connections" state; count requests ourselves.
        budget = timeout if timeout is not None else self._navigation_timeouts.get(
            page, self._default_navigation_timeout
        )
        started = time.monotonic()
        watcher = NetworkIdleWatcher(max_inflight)
        watcher.attach(page)
        try:
            response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            remaining = max(budget - (time.monotonic() - started), 0.0)
            await asyncio.wait_for(watcher.wait(), timeout=remaining)
        finally:
            watcher.detach(page)
        return response

    async def close_page(self, page: Page) -> None:
        """Close ``page`` and its context.  Failures are logged, never raised."""
        if page in self._pages:
            self._pages.remove(page)
        self._navigation_timeouts.pop(page, None)
        scoped = _scope_pages.get()
        if scoped is not None and page in scoped:
            scoped.remove(page)
        await self._close_page(page)

    @asynccontextmanager
    async def page_scope(self) -> AsyncIterator[None]:
        """Close the pages opened inside this block when it exits.

        Scopes nest and overlap freely: each one closes only its own pages,
        and the browser stays up for the rest.  Never raises on exit.
        """
        pages: list[Page] = []
        token = _scope_pages.set(pages)
        try:
            yield
        finally:
            _scope_pages.reset(token)
            if pages:
                logger.debug("browser: closing %d page(s) at end of scope", len(pages))
            await asyncio.gather(*(self.close_page(page) for page in list(pages)))

    async def _close_page(self, page: Page) -> None:
        url = page.url
        await self._close_context(page.context, url)

    @staticmethod
    async def _close_context(context: BrowserContext, url: str) -> None:
        try:
            await context.close()
        except Exception as exc:  # noqa: BLE001
            logger.warning("browser: failed to close a page(%s): %s", url, exc)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def dispose(self) -> None:
        """Close every page, then the browser, then reset for reuse.

        Each step is attempted even if an earlier one failed; failures are
        logged and swallowed.  Never raises.
        """
        if self._browser is None and self._pending is None:
            logger.debug("browser: no browser to dispose")
            return

        self._state = SessionState.DISPOSING
        try:
            browser = self._browser
            if browser is None:
                try:
                    browser = await asyncio.shield(self._pending)
                except Exception as exc:  # noqa: BLE001
                    logger.warning("browser: launch failed before dispose: %s", exc)
                    return

            pages, self._pages = self._pages, []
            self._navigation_timeouts.clear()
            await asyncio.gather(*(self._close_page(page) for page in pages))

            try:
                await browser.close()
                logger.info("browser: browser is closed")
            except Exception as exc:  # noqa: BLE001
                logger.warning("browser: failed to close the browser: %s", exc)

            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as exc:  # noqa: BLE001
                    logger.warning("browser: failed to stop the Playwright driver: %s", exc)
        finally:
            self._playwright = None
            self._browser = None
            self._pending = None
            self._state = SessionState.DISPOSED
