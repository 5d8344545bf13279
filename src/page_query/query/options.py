"""Caller-facing request options for :meth:`DocumentService.fetch`.

These pydantic models are the input contract of the query layer.  Values are
validated here, before any I/O, and translated into the browser-level
:class:`~page_query.browser.options.PageOptions` by
:meth:`FetchOptions.to_page_options`.

Validation failures surface as ``pydantic.ValidationError``.  The URL is
not part of the options; :func:`validate_url` checks it separately and
raises :class:`~page_query.core.exceptions.InvalidUrlError` so that it
shares the navigation error taxonomy.
"""

from __future__ import annotations

from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from page_query.browser.options import PageOptions, WaitCondition
from page_query.core.exceptions import InvalidUrlError

ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})

#: Device pixel ratio used when a viewport omits ``scale``.
DEFAULT_SCALE: float = 1.0


def validate_url(url: str) -> str:
    """Return ``url`` if it is a non-empty absolute http(s) URL.

    Raises:
        InvalidUrlError: If the URL is empty, unparseable, has no host or
            uses another scheme.
    """
    if not url:
        raise InvalidUrlError("URL must not be empty", url=url)
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise InvalidUrlError(f"URL is invalid {url}", url=url) from exc
    if not parts.scheme:
        raise InvalidUrlError(f"URL must contain a scheme: {url}", url=url)
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrlError(f"URL contains a disallowed scheme {parts.scheme!r}: {url}", url=url)
    if not parts.hostname:
        raise InvalidUrlError(f"URL must contain a host: {url}", url=url)
    return url


# ---------------------------------------------------------------------------
# Nested option models
# ---------------------------------------------------------------------------


class SameSite(str, Enum):
    LAX = "LAX"
    STRICT = "STRICT"
    NONE = "NONE"

    @property
    def playwright_value(self) -> str:
        return self.value.capitalize()


class Cookie(BaseModel):
    """A cookie installed on the page before navigation.

    Either ``url`` or ``domain`` must be given.  A domain cookie without a
    path is scoped to ``/``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: str
    url: str | None = None
    domain: str | None = None
    path: str | None = None
    expires: float | None = None
    http_only: bool | None = None
    secure: bool | None = None
    same_site: SameSite | None = None

    @model_validator(mode="after")
    def _require_scope(self) -> Cookie:
        if self.url is None and self.domain is None:
            raise ValueError(f"Either cookie URL or domain must be specified: name={self.name}")
        return self

    def to_playwright(self) -> dict[str, Any]:
        cookie: dict[str, Any] = {"name": self.name, "value": self.value}
        if self.url is not None:
            cookie["url"] = self.url
        else:
            cookie["domain"] = self.domain
            cookie["path"] = self.path or "/"
        if self.expires is not None:
            cookie["expires"] = self.expires
        if self.http_only is not None:
            cookie["httpOnly"] = self.http_only
        if self.secure is not None:
            cookie["secure"] = self.secure
        if self.same_site is not None:
            cookie["sameSite"] = self.same_site.playwright_value
        return cookie


class Viewport(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    scale: float = Field(default=DEFAULT_SCALE, gt=0)
    mobile: bool = False
    touch: bool = False


class Location(BaseModel):
    """Emulated geolocation.  Setting one grants the geolocation permission."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, gt=0)


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: str


# ---------------------------------------------------------------------------
# Request options
# ---------------------------------------------------------------------------


class FetchOptions(BaseModel):
    """Per-request settings for fetching one document.

    Attributes:
        timeout: Navigation and evaluation timeout for the page, in seconds.
            ``None`` uses the session defaults.
        user_agent: ``User-Agent`` for the page and for the robots.txt
            check.
        javascript_enabled: Run page scripts.
        wait_until: When navigation counts as finished.  Accepts the enum,
            its name (``"NETWORK_IDLE2"``) or its value (``"networkidle2"``).
        ignore_robots_txt: Skip the robots.txt check.
        headers: Extra HTTP headers sent with every page request.
        cookies: Cookies installed before navigation.
        viewport: Emulated viewport.
        location: Emulated geolocation.
        credentials: HTTP authentication credentials.
        intercept_requests: Override the session's resource blocking.
    """

    model_config = ConfigDict(frozen=True)

    timeout: float | None = Field(default=None, gt=0)
    user_agent: str | None = None
    javascript_enabled: bool = True
    wait_until: WaitCondition = WaitCondition.LOAD
    ignore_robots_txt: bool = False
    headers: dict[str, str] = Field(default_factory=dict)
    cookies: list[Cookie] = Field(default_factory=list)
    viewport: Viewport | None = None
    location: Location | None = None
    credentials: Credentials | None = None
    intercept_requests: bool | None = None

    @field_validator("wait_until", mode="before")
    @classmethod
    def _parse_wait_until(cls, value: Any) -> Any:
        """Accept wait conditions by name as well as by engine value."""
        if isinstance(value, str) and not isinstance(value, WaitCondition):
            member = WaitCondition.__members__.get(value.upper())
            if member is not None:
                return member
            try:
                return WaitCondition(value.lower())
            except ValueError:
                raise ValueError(f"Unknown load event: input={value}") from None
        return value

    def to_page_options(self) -> PageOptions:
        """Translate into browser-level page settings."""
        options = PageOptions(
            timeout=self.timeout,
            navigation_timeout=self.timeout,
            user_agent=self.user_agent,
            javascript_enabled=self.javascript_enabled,
            intercept_requests=self.intercept_requests,
            extra_headers=dict(self.headers),
            cookies=[cookie.to_playwright() for cookie in self.cookies],
        )
        if self.viewport is not None:
            options.viewport = {"width": self.viewport.width, "height": self.viewport.height}
            options.device_scale_factor = self.viewport.scale
            options.is_mobile = self.viewport.mobile
            options.has_touch = self.viewport.touch
        if self.location is not None:
            options.geolocation = {
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
            }
            if self.location.accuracy is not None:
                options.geolocation["accuracy"] = self.location.accuracy
        if self.credentials is not None:
            options.http_credentials = {
                "username": self.credentials.username,
                "password": self.credentials.password,
            }
        return options
