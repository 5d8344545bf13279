"""Shared pytest fixtures for page-query tests.

Fixture summary
---------------
fake_document   — Small in-memory DOM used by the proxy tests.
fake_page       — ``FakePage`` serving ``fake_document``.
fake_browser    — ``FakeBrowser`` whose pages serve ``fake_document``.
session         — ``RenderSession`` launched through ``fake_browser``.

No browser, network or Redis is needed; see ``tests/fakes.py``.
"""

from __future__ import annotations

import os

import pytest

# Keep a developer's .env / environment from leaking into Settings() defaults.
for _key in ("REDIS_URL", "BROWSER_HEADLESS", "INTERCEPT_REQUESTS"):
    os.environ.pop(_key, None)

from page_query.browser.session import RenderSession  # noqa: E402
from page_query.config.settings import get_settings  # noqa: E402
from tests.fakes import FakeBrowser, FakeNode, FakePage, comment, element, html, text  # noqa: E402

get_settings.cache_clear()


@pytest.fixture
def fake_document() -> FakeNode:
    """A document shaped like::

        <html lang="en">
          <head><title>Fixture</title></head>
          <body class="page">
            <div id="main" class="content wide" data-user-id="7">
              <p class="lead">Hello</p><!--note--><p>World</p>
            </div>
            <ul id="empty"></ul>
          </body>
        </html>
    """
    return html(
        element("head", element("title", text("Fixture"))),
        element(
            "body",
            element(
                "div",
                element("p", text("Hello"), class_="lead"),
                comment("note"),
                element("p", text("World")),
                id="main",
                class_="content wide",
                data_user_id="7",
            ),
            element("ul", id="empty"),
            class_="page",
        ),
        title="Fixture",
        lang="en",
    )


@pytest.fixture
def fake_page(fake_document: FakeNode) -> FakePage:
    return FakePage(document=fake_document, url="https://example.com/")


@pytest.fixture
def fake_browser(fake_document: FakeNode) -> FakeBrowser:
    return FakeBrowser(document=fake_document)


@pytest.fixture
def session(fake_browser: FakeBrowser) -> RenderSession:
    async def _launch() -> FakeBrowser:
        return fake_browser

    return RenderSession(launcher=_launch)
