"""Headless browser session management.

Sub-modules:
- ``session`` — ``RenderSession`` lifecycle: launch, pages, navigation, teardown
- ``options`` — ``PageOptions`` and ``WaitCondition``
- ``errors``  — ``translate_error`` navigation failure classification
- ``idle``    — ``NetworkIdleWatcher`` for bounded-connection idle waits
"""

from __future__ import annotations

from page_query.browser.errors import translate_error
from page_query.browser.options import PageOptions, WaitCondition
from page_query.browser.session import RenderSession, SessionState

__all__ = [
    "PageOptions",
    "RenderSession",
    "SessionState",
    "WaitCondition",
    "translate_error",
]
