"""Classification of navigation failures.

Playwright raises a plain ``playwright.async_api.Error`` for network
failures; the only structured information is the Chromium net error code
embedded in the message (``net::ERR_NAME_NOT_RESOLVED at https://...``).
:func:`translate_error` therefore matches message substrings against
:data:`ERROR_TABLE`.  The table is best effort and engine-version specific:
every entry has a regression test in ``tests/unit/test_browser_errors.py``.

Chromium codes: https://source.chromium.org/chromium/chromium/src/+/main:net/base/net_error_list.h
"""

from __future__ import annotations

import asyncio

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from page_query.core.exceptions import (
    InvalidUrlError,
    NetworkError,
    NotAvailableError,
    PageQueryError,
    RequestTimeoutError,
    SslCertificateError,
)

#: Ordered (substrings, error class, message template) rules.  First match wins.
ERROR_TABLE: tuple[tuple[tuple[str, ...], type[PageQueryError], str], ...] = (
    (
        ("ERR_INVALID_URL", "Cannot navigate to invalid URL"),
        InvalidUrlError,
        "URL is invalid {url}",
    ),
    (
        ("ERR_CERT_", "ERR_SSL_"),
        SslCertificateError,
        "Received SSL certificate error from {url}",
    ),
    (
        ("DNS_PROBE_FINISHED_NXDOMAIN", "ERR_NAME_NOT_RESOLVED", "ERR_CONNECTION_REFUSED"),
        NotAvailableError,
        "Requested webpage is not available {url}",
    ),
)


def translate_error(error: BaseException, url: str) -> PageQueryError:
    """Map a raw navigation failure to a typed error.

    Priority order:

    1. Errors already in the :class:`PageQueryError` hierarchy pass through.
    2. Playwright or asyncio timeouts become :class:`RequestTimeoutError`.
    3. Messages matching :data:`ERROR_TABLE` become the mapped class.
    4. Anything else becomes :class:`NetworkError`.

    Args:
        error: The exception raised by the navigation.
        url: The URL being navigated to, included in the message.

    Returns:
        The typed error; the caller raises it.
    """
    if isinstance(error, PageQueryError):
        return error
    if isinstance(error, (PlaywrightTimeoutError, asyncio.TimeoutError)):
        return RequestTimeoutError(f"Request timed out {url}", url=url)

    message = str(error)
    for markers, error_type, template in ERROR_TABLE:
        if any(marker in message for marker in markers):
            return error_type(template.format(url=url), url=url)
    return NetworkError(f"Received network error from {url}: {message}", url=url)
