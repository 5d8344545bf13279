"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
Settings are read once at process start and handed to
:meth:`page_query.browser.session.RenderSession.from_settings` and
:meth:`page_query.service.DocumentService.from_settings`; nothing else in
the codebase reads the environment directly.

Usage::

    from page_query.config.settings import get_settings

    settings = get_settings()
    headless = settings.browser_headless
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration backed by environment variables and an optional .env file.

    Every field has a default, so an empty environment yields a working
    headless setup with an in-process policy cache.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Rendering engine
    # ------------------------------------------------------------------

    browser_executable_path: Optional[str] = None
    """Path to a Chromium binary.  ``None`` uses the build bundled with Playwright
    (install it with ``playwright install chromium``)."""

    browser_headless: bool = True
    """Launch the browser without a window.  Request interception is only
    installed in headless mode."""

    browser_args: list[str] = []
    """Extra command-line flags passed to Chromium at launch."""

    default_timeout: float = 50.0
    """Default timeout in seconds for remote evaluations on a page."""

    default_navigation_timeout: float = 50.0
    """Default timeout in seconds for navigations on a page."""

    intercept_requests: bool = False
    """Abort requests for :attr:`blocked_resource_types` to bound page-load cost.

    Off by default because it changes what the page observes (no layout
    from stylesheets, no image dimensions).  Individual requests may
    override it.
    """

    blocked_resource_types: list[str] = ["font", "image", "media", "stylesheet"]
    """Playwright resource types aborted when interception is enabled."""

    # ------------------------------------------------------------------
    # robots.txt policy cache
    # ------------------------------------------------------------------

    redis_url: Optional[str] = None
    """Redis connection URL for the policy cache.  When ``None`` an
    in-process LRU cache is used instead."""

    robots_cache_prefix: str = "robotstxt:"
    """Key prefix separating policy entries from other data in the same store."""

    robots_cache_ttl: int = 1800
    """Lifetime in seconds of a cached robots.txt body (including empty
    bodies recorded after a failed fetch)."""

    robots_fetch_timeout: float = 2.0
    """Timeout in seconds for a single robots.txt download."""

    robots_user_agent: str = "*"
    """User-agent token checked against robots.txt when the caller supplies none."""

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Uses ``functools.lru_cache`` so that Pydantic Settings reads the environment
    and .env file exactly once per process lifetime.  In tests, call
    ``get_settings.cache_clear()`` after patching environment variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
