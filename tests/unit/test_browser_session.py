"""Unit tests for RenderSession.

Tests cover:
- acquire() launches once for concurrent callers and memoizes the browser
- a failed launch is forgotten so the next acquire() retries
- open_page() applies context options, timeouts (ms), cookies and interception
- interception aborts blocked resource types and continues the rest
- interception is skipped unless enabled, and skipped when not headless
- navigate() maps wait conditions, returns non-2xx responses, and fails with
  NoResponse / RequestTimeout / translated errors
- NETWORK_IDLE2 waits for a quiet window and times out while saturated
- close_page() and dispose() never raise and close everything they can
- page_scope() closes only the pages opened inside it, even when scopes overlap
- from_settings() wiring

The browser is a FakeBrowser returned by an injected launcher.
"""

from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from page_query.browser import PageOptions, RenderSession, SessionState, WaitCondition
from page_query.config.settings import Settings
from page_query.core.exceptions import (
    NoResponseError,
    NotAvailableError,
    RequestTimeoutError,
)
from tests.fakes import FakeBrowser, FakeRequest, FakeResponse, FakeRoute

URL = "https://example.com/"


def _session(browser: FakeBrowser, **kwargs) -> tuple[RenderSession, list[int]]:
    """Return a session whose launcher counts its calls."""
    launches: list[int] = []

    async def _launch() -> FakeBrowser:
        launches.append(1)
        await asyncio.sleep(0)
        return browser

    return RenderSession(launcher=_launch, **kwargs), launches


# ---------------------------------------------------------------------------
# acquire()
# ---------------------------------------------------------------------------


class TestAcquire:
    @pytest.mark.asyncio
    async def test_initial_state(self, session: RenderSession) -> None:
        assert session.state is SessionState.UNINITIALIZED
        assert session.pages == []

    @pytest.mark.asyncio
    async def test_concurrent_acquire_launches_once(self, fake_browser: FakeBrowser) -> None:
        session, launches = _session(fake_browser)

        browsers = await asyncio.gather(*(session.acquire() for _ in range(5)))

        assert len(launches) == 1
        assert all(browser is fake_browser for browser in browsers)
        assert session.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_acquire_reuses_ready_browser(self, fake_browser: FakeBrowser) -> None:
        session, launches = _session(fake_browser)

        await session.acquire()
        await session.acquire()

        assert len(launches) == 1

    @pytest.mark.asyncio
    async def test_state_is_connecting_during_launch(self, fake_browser: FakeBrowser) -> None:
        release = asyncio.Event()

        async def _launch() -> FakeBrowser:
            await release.wait()
            return fake_browser

        session = RenderSession(launcher=_launch)
        pending = asyncio.ensure_future(session.acquire())
        await asyncio.sleep(0)

        assert session.state is SessionState.CONNECTING

        release.set()
        assert await pending is fake_browser
        assert session.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_failed_launch_allows_retry(self, fake_browser: FakeBrowser) -> None:
        attempts: list[int] = []

        async def _launch() -> FakeBrowser:
            attempts.append(1)
            if len(attempts) == 1:
                raise PlaywrightError("Executable doesn't exist at /opt/chrome")
            return fake_browser

        session = RenderSession(launcher=_launch)

        with pytest.raises(PlaywrightError):
            await session.acquire()
        assert session.state is SessionState.UNINITIALIZED

        assert await session.acquire() is fake_browser
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_launch_failure(self) -> None:
        attempts: list[int] = []

        async def _launch() -> FakeBrowser:
            attempts.append(1)
            await asyncio.sleep(0)
            raise PlaywrightError("launch failed")

        session = RenderSession(launcher=_launch)

        results = await asyncio.gather(
            session.acquire(), session.acquire(), return_exceptions=True
        )

        assert len(attempts) == 1
        assert all(isinstance(result, PlaywrightError) for result in results)


# ---------------------------------------------------------------------------
# open_page()
# ---------------------------------------------------------------------------


class TestOpenPage:
    @pytest.mark.asyncio
    async def test_defaults(self, session: RenderSession, fake_browser: FakeBrowser) -> None:
        page = await session.open_page()

        context = fake_browser.contexts[0]
        assert context.options == {}
        assert page.default_timeout == 50_000
        assert page.default_navigation_timeout == 50_000
        assert page.routes == []
        assert session.pages == [page]

    @pytest.mark.asyncio
    async def test_each_page_gets_its_own_context(
        self, session: RenderSession, fake_browser: FakeBrowser
    ) -> None:
        first = await session.open_page()
        second = await session.open_page()

        assert first.context is not second.context
        assert len(fake_browser.contexts) == 2

    @pytest.mark.asyncio
    async def test_custom_options(self, session: RenderSession, fake_browser: FakeBrowser) -> None:
        cookie = {"name": "sid", "value": "abc", "url": URL}
        page = await session.open_page(
            PageOptions(
                timeout=5,
                navigation_timeout=7.5,
                user_agent="TestBot/1.0",
                javascript_enabled=False,
                extra_headers={"Accept-Language": "da"},
                cookies=[cookie],
            )
        )

        context = fake_browser.contexts[0]
        assert context.options == {
            "user_agent": "TestBot/1.0",
            "java_script_enabled": False,
            "extra_http_headers": {"Accept-Language": "da"},
        }
        assert context.cookies == [cookie]
        assert page.default_timeout == 5_000
        assert page.default_navigation_timeout == 7_500

    @pytest.mark.asyncio
    async def test_geolocation_grants_permission(
        self, session: RenderSession, fake_browser: FakeBrowser
    ) -> None:
        await session.open_page(PageOptions(geolocation={"latitude": 55.7, "longitude": 12.6}))

        options = fake_browser.contexts[0].options
        assert options["geolocation"] == {"latitude": 55.7, "longitude": 12.6}
        assert options["permissions"] == ["geolocation"]

    @pytest.mark.asyncio
    async def test_failed_setup_closes_context(self, fake_browser: FakeBrowser) -> None:
        session, _ = _session(fake_browser)

        async def _broken_add_cookies(cookies) -> None:
            raise PlaywrightError("Cookie should have a url or a domain/path pair")

        await session.acquire()
        original_new_context = fake_browser.new_context

        async def _new_context(**options):
            context = await original_new_context(**options)
            context.add_cookies = _broken_add_cookies
            return context

        fake_browser.new_context = _new_context

        with pytest.raises(PlaywrightError):
            await session.open_page(PageOptions(cookies=[{"name": "x", "value": "y"}]))

        assert fake_browser.contexts[0].closed
        assert session.pages == []


# ---------------------------------------------------------------------------
# Interception
# ---------------------------------------------------------------------------


class TestInterception:
    @pytest.mark.asyncio
    async def test_enabled_session_installs_route(self, fake_browser: FakeBrowser) -> None:
        session, _ = _session(fake_browser, intercept_requests=True)

        page = await session.open_page()

        assert [pattern for pattern, _ in page.routes] == ["**/*"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("resource_type", "outcome"),
        [
            ("image", "aborted"),
            ("font", "aborted"),
            ("media", "aborted"),
            ("stylesheet", "aborted"),
            ("document", "continued"),
            ("script", "continued"),
            ("xhr", "continued"),
        ],
    )
    async def test_route_handler_blocks_configured_types(
        self, fake_browser: FakeBrowser, resource_type: str, outcome: str
    ) -> None:
        session, _ = _session(fake_browser, intercept_requests=True)
        page = await session.open_page()
        _, handler = page.routes[0]
        route = FakeRoute(resource_type)

        await handler(route)

        assert route.outcome == outcome

    @pytest.mark.asyncio
    async def test_custom_blocked_types(self, fake_browser: FakeBrowser) -> None:
        session, _ = _session(fake_browser, intercept_requests=True, blocked_resource_types=["script"])
        page = await session.open_page()
        _, handler = page.routes[0]

        script, image = FakeRoute("script"), FakeRoute("image")
        await handler(script)
        await handler(image)

        assert script.outcome == "aborted"
        assert image.outcome == "continued"

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, session: RenderSession) -> None:
        page = await session.open_page()

        assert page.routes == []

    @pytest.mark.asyncio
    async def test_per_page_override(self, fake_browser: FakeBrowser) -> None:
        session, _ = _session(fake_browser, intercept_requests=True)

        page = await session.open_page(PageOptions(intercept_requests=False))
        other = await session.open_page(PageOptions(intercept_requests=None))

        assert page.routes == []
        assert len(other.routes) == 1

    @pytest.mark.asyncio
    async def test_not_installed_when_headed(self, fake_browser: FakeBrowser) -> None:
        session, _ = _session(fake_browser, headless=False, intercept_requests=True)

        page = await session.open_page()

        assert page.routes == []


# ---------------------------------------------------------------------------
# navigate()
# ---------------------------------------------------------------------------


class TestNavigate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("condition", "engine_value"),
        [
            (WaitCondition.LOAD, "load"),
            (WaitCondition.DOM_CONTENT_LOADED, "domcontentloaded"),
            (WaitCondition.NETWORK_IDLE0, "networkidle"),
        ],
    )
    async def test_wait_condition_mapping(
        self, session: RenderSession, condition: WaitCondition, engine_value: str
    ) -> None:
        page = await session.open_page()

        response = await session.navigate(page, URL, condition)

        assert response.status == 200
        assert page.goto_calls == [{"url": URL, "wait_until": engine_value, "timeout": None}]

    @pytest.mark.asyncio
    async def test_timeout_converted_to_ms(self, session: RenderSession) -> None:
        page = await session.open_page()

        await session.navigate(page, URL, timeout=3)

        assert page.goto_calls[0]["timeout"] == 3_000

    @pytest.mark.asyncio
    async def test_non_2xx_is_returned(self, session: RenderSession) -> None:
        page = await session.open_page()
        page.goto_result = FakeResponse(404)

        response = await session.navigate(page, URL)

        assert response.status == 404

    @pytest.mark.asyncio
    async def test_none_response_is_no_response(self, session: RenderSession) -> None:
        page = await session.open_page()
        page.goto_result = None

        with pytest.raises(NoResponseError) as exc_info:
            await session.navigate(page, URL)

        assert exc_info.value.kind == "NoResponse"
        assert URL in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_is_request_timeout(self, session: RenderSession) -> None:
        page = await session.open_page()
        page.goto_result = PlaywrightTimeoutError("Timeout 50000ms exceeded.")

        with pytest.raises(RequestTimeoutError) as exc_info:
            await session.navigate(page, URL)

        assert isinstance(exc_info.value.__cause__, PlaywrightTimeoutError)

    @pytest.mark.asyncio
    async def test_engine_error_is_translated(self, session: RenderSession) -> None:
        page = await session.open_page()
        page.goto_result = PlaywrightError(f"Page.goto: net::ERR_NAME_NOT_RESOLVED at {URL}")

        with pytest.raises(NotAvailableError):
            await session.navigate(page, URL)

    @pytest.mark.asyncio
    async def test_network_idle2_returns_after_quiet_window(self, session: RenderSession) -> None:
        page = await session.open_page()
        page.requests_on_goto = [FakeRequest(), FakeRequest()]

        response = await session.navigate(page, URL, WaitCondition.NETWORK_IDLE2, timeout=5)

        assert response.status == 200
        assert page.goto_calls[0]["wait_until"] == "domcontentloaded"
        assert all(not handlers for handlers in page.listeners.values())

    @pytest.mark.asyncio
    async def test_network_idle2_times_out_while_saturated(self, session: RenderSession) -> None:
        page = await session.open_page()
        page.requests_on_goto = [FakeRequest() for _ in range(3)]

        with pytest.raises(RequestTimeoutError):
            await session.navigate(page, URL, WaitCondition.NETWORK_IDLE2, timeout=0.2)

        assert all(not handlers for handlers in page.listeners.values())


# ---------------------------------------------------------------------------
# close_page() / dispose()
# ---------------------------------------------------------------------------


class TestDispose:
    @pytest.mark.asyncio
    async def test_close_page_closes_context(self, session: RenderSession) -> None:
        page = await session.open_page()

        await session.close_page(page)

        assert page.context.closed
        assert session.pages == []

    @pytest.mark.asyncio
    async def test_close_page_swallows_errors(self, session: RenderSession) -> None:
        page = await session.open_page()
        page.context.close_error = PlaywrightError("Target closed")

        await session.close_page(page)

        assert session.pages == []

    @pytest.mark.asyncio
    async def test_dispose_closes_pages_and_browser(
        self, session: RenderSession, fake_browser: FakeBrowser
    ) -> None:
        pages = [await session.open_page() for _ in range(3)]

        await session.dispose()

        assert all(page.context.closed for page in pages)
        assert fake_browser.closed
        assert session.state is SessionState.DISPOSED
        assert session.pages == []

    @pytest.mark.asyncio
    async def test_dispose_continues_past_failing_page(
        self, session: RenderSession, fake_browser: FakeBrowser
    ) -> None:
        pages = [await session.open_page() for _ in range(3)]
        pages[1].context.close_error = PlaywrightError("Target page, context or browser has been closed")

        await session.dispose()

        assert pages[0].context.closed
        assert pages[2].context.closed
        assert fake_browser.closed
        assert session.state is SessionState.DISPOSED

    @pytest.mark.asyncio
    async def test_dispose_swallows_browser_close_failure(
        self, session: RenderSession, fake_browser: FakeBrowser
    ) -> None:
        await session.open_page()
        fake_browser.close_error = PlaywrightError("Browser has been closed")

        await session.dispose()

        assert session.state is SessionState.DISPOSED

    @pytest.mark.asyncio
    async def test_dispose_without_browser_is_noop(self, session: RenderSession) -> None:
        await session.dispose()

        assert session.state is SessionState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_dispose_waits_for_pending_launch(self, fake_browser: FakeBrowser) -> None:
        release = asyncio.Event()

        async def _launch() -> FakeBrowser:
            await release.wait()
            return fake_browser

        session = RenderSession(launcher=_launch)
        pending = asyncio.ensure_future(session.acquire())
        await asyncio.sleep(0)

        disposing = asyncio.ensure_future(session.dispose())
        await asyncio.sleep(0)
        release.set()
        await disposing

        assert await pending is fake_browser
        assert fake_browser.closed
        assert session.state is SessionState.DISPOSED

    @pytest.mark.asyncio
    async def test_dispose_after_failed_pending_launch(self) -> None:
        release = asyncio.Event()

        async def _launch() -> FakeBrowser:
            await release.wait()
            raise PlaywrightError("launch failed")

        session = RenderSession(launcher=_launch)
        pending = asyncio.ensure_future(session.acquire())
        await asyncio.sleep(0)

        disposing = asyncio.ensure_future(session.dispose())
        await asyncio.sleep(0)
        release.set()
        await disposing

        with pytest.raises(PlaywrightError):
            await pending
        assert session.state is SessionState.DISPOSED

    @pytest.mark.asyncio
    async def test_session_is_reusable_after_dispose(self, fake_browser: FakeBrowser) -> None:
        session, launches = _session(fake_browser)
        await session.open_page()
        await session.dispose()

        await session.open_page()

        assert len(launches) == 2
        assert session.state is SessionState.READY


class TestPageScope:
    @pytest.mark.asyncio
    async def test_closes_only_pages_opened_inside(
        self, session: RenderSession, fake_browser: FakeBrowser
    ) -> None:
        outside = await session.open_page()

        async with session.page_scope():
            inside = await session.open_page()

        assert inside.closed
        assert not outside.closed
        assert session.pages == [outside]
        assert not fake_browser.closed
        assert session.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_overlapping_scopes_are_independent(self, session: RenderSession) -> None:
        first_opened = asyncio.Event()
        second_opened = asyncio.Event()
        first_closed = asyncio.Event()

        async def first():
            async with session.page_scope():
                page = await session.open_page()
                first_opened.set()
                await second_opened.wait()
            first_closed.set()
            return page

        async def second():
            async with session.page_scope():
                await first_opened.wait()
                page = await session.open_page()
                second_opened.set()
                await first_closed.wait()
                still_open = not page.closed
            return page, still_open

        first_page, (second_page, still_open) = await asyncio.gather(first(), second())

        assert still_open
        assert first_page.closed
        assert second_page.closed

    @pytest.mark.asyncio
    async def test_page_closed_inside_scope_is_not_closed_again(self, session: RenderSession) -> None:
        async with session.page_scope():
            page = await session.open_page()
            await session.close_page(page)

        assert page.context.close_calls == 1

    @pytest.mark.asyncio
    async def test_close_failure_is_swallowed(self, session: RenderSession) -> None:
        async with session.page_scope():
            page = await session.open_page()
            page.context.close_error = PlaywrightError("Target closed")

        assert session.pages == []


class TestFromSettings:
    @pytest.mark.asyncio
    async def test_settings_reach_pages(self, fake_browser: FakeBrowser) -> None:
        settings = Settings(
            default_timeout=12,
            default_navigation_timeout=30,
            intercept_requests=True,
            blocked_resource_types=["image"],
        )

        async def _launch() -> FakeBrowser:
            return fake_browser

        session = RenderSession.from_settings(settings, launcher=_launch)
        page = await session.open_page()

        assert page.default_timeout == 12_000
        assert page.default_navigation_timeout == 30_000
        assert len(page.routes) == 1
