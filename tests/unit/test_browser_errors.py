"""Regression tests for translate_error().

One case per ERROR_TABLE marker, using messages in the shape Chromium and
Playwright actually produce.  If a Playwright upgrade changes a message,
the failing case here names the marker that needs updating.
"""

from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from page_query.browser.errors import ERROR_TABLE, translate_error
from page_query.core.exceptions import (
    AccessDisallowedError,
    InvalidUrlError,
    NetworkError,
    NotAvailableError,
    RequestTimeoutError,
    SslCertificateError,
)

URL = "https://example.com/page"


def _goto_error(code: str) -> PlaywrightError:
    return PlaywrightError(
        f"Page.goto: net::{code} at {URL}\nCall log:\n  - navigating to \"{URL}\", waiting until \"load\"\n"
    )


class TestErrorTable:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("ERR_INVALID_URL", InvalidUrlError),
            ("ERR_CERT_DATE_INVALID", SslCertificateError),
            ("ERR_CERT_AUTHORITY_INVALID", SslCertificateError),
            ("ERR_CERT_COMMON_NAME_INVALID", SslCertificateError),
            ("ERR_SSL_PROTOCOL_ERROR", SslCertificateError),
            ("ERR_NAME_NOT_RESOLVED", NotAvailableError),
            ("ERR_CONNECTION_REFUSED", NotAvailableError),
            ("DNS_PROBE_FINISHED_NXDOMAIN", NotAvailableError),
        ],
    )
    def test_chromium_net_codes(self, code: str, expected: type) -> None:
        error = translate_error(_goto_error(code), URL)

        assert type(error) is expected
        assert error.url == URL
        assert URL in str(error)

    def test_playwright_invalid_url_message(self) -> None:
        error = translate_error(
            PlaywrightError("Page.goto: Protocol error (Page.navigate): Cannot navigate to invalid URL"),
            "htp:/nope",
        )

        assert isinstance(error, InvalidUrlError)
        assert error.kind == "InvalidUrl"

    def test_unmatched_message_is_network_error(self) -> None:
        error = translate_error(_goto_error("ERR_CONNECTION_RESET"), URL)

        assert type(error) is NetworkError
        assert error.kind == "NetworkError"
        assert "ERR_CONNECTION_RESET" in str(error)

    def test_non_playwright_exception_is_network_error(self) -> None:
        assert type(translate_error(RuntimeError("boom"), URL)) is NetworkError

    def test_every_rule_has_markers(self) -> None:
        for markers, _error_type, template in ERROR_TABLE:
            assert markers
            assert "{url}" in template


class TestPriority:
    def test_playwright_timeout_is_request_timeout(self) -> None:
        error = translate_error(PlaywrightTimeoutError("Timeout 50000ms exceeded."), URL)

        assert isinstance(error, RequestTimeoutError)
        assert error.kind == "RequestTimeout"

    def test_asyncio_timeout_is_request_timeout(self) -> None:
        assert isinstance(translate_error(asyncio.TimeoutError(), URL), RequestTimeoutError)

    def test_timeout_wins_over_table(self) -> None:
        error = translate_error(PlaywrightTimeoutError("net::ERR_NAME_NOT_RESOLVED"), URL)

        assert isinstance(error, RequestTimeoutError)

    def test_typed_error_passes_through_unchanged(self) -> None:
        original = AccessDisallowedError(URL)

        assert translate_error(original, "https://other.example/") is original

    def test_typed_navigation_error_is_not_reclassified(self) -> None:
        original = NetworkError("net::ERR_CERT_DATE_INVALID", url=URL)

        assert translate_error(original, URL) is original
