"""Per-page configuration and navigation wait conditions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class WaitCondition(str, Enum):
    """When a navigation is considered finished.

    Attributes:
        LOAD: The ``load`` event fired.
        DOM_CONTENT_LOADED: The ``DOMContentLoaded`` event fired.
        NETWORK_IDLE0: No network connections for at least 500 ms.
        NETWORK_IDLE2: No more than two network connections for at least 500 ms.
    """

    LOAD = "load"
    DOM_CONTENT_LOADED = "domcontentloaded"
    NETWORK_IDLE0 = "networkidle0"
    NETWORK_IDLE2 = "networkidle2"

    @property
    def max_inflight(self) -> int | None:
        """Connection budget for network-idle conditions, ``None`` otherwise."""
        return _MAX_INFLIGHT.get(self)


_MAX_INFLIGHT: dict[WaitCondition, int] = {
    WaitCondition.NETWORK_IDLE0: 0,
    WaitCondition.NETWORK_IDLE2: 2,
}


@dataclass
class PageOptions:
    """Settings applied to a page before it navigates.

    ``None`` means "use the session default".  Timeouts are in seconds.

    Attributes:
        timeout: Default timeout for evaluations on the page.
        navigation_timeout: Default timeout for navigations on the page.
        user_agent: ``User-Agent`` override.
        javascript_enabled: Run page scripts.
        intercept_requests: Override the session's resource-blocking policy.
        extra_headers: Headers added to every request the page makes.
        viewport: Playwright viewport dict (``width``, ``height``).
        device_scale_factor: Device pixel ratio.
        is_mobile: Emulate a mobile device.
        has_touch: Emulate touch support.
        geolocation: Playwright geolocation dict (``latitude``, ``longitude``,
            optional ``accuracy``).  Grants the geolocation permission.
        http_credentials: ``{"username": ..., "password": ...}`` for HTTP auth.
        cookies: Playwright cookie dicts installed before navigation.
    """

    timeout: float | None = None
    navigation_timeout: float | None = None
    user_agent: str | None = None
    javascript_enabled: bool | None = None
    intercept_requests: bool | None = None
    extra_headers: dict[str, str] = field(default_factory=dict)
    viewport: dict[str, int] | None = None
    device_scale_factor: float | None = None
    is_mobile: bool | None = None
    has_touch: bool | None = None
    geolocation: dict[str, float] | None = None
    http_credentials: dict[str, str] | None = None
    cookies: list[dict[str, Any]] = field(default_factory=list)

    def context_kwargs(self) -> dict[str, Any]:
        """Return the ``Browser.new_context`` keyword arguments these options imply."""
        kwargs: dict[str, Any] = {}
        if self.user_agent is not None:
            kwargs["user_agent"] = self.user_agent
        if self.javascript_enabled is not None:
            kwargs["java_script_enabled"] = self.javascript_enabled
        if self.extra_headers:
            kwargs["extra_http_headers"] = dict(self.extra_headers)
        if self.viewport is not None:
            kwargs["viewport"] = dict(self.viewport)
        if self.device_scale_factor is not None:
            kwargs["device_scale_factor"] = self.device_scale_factor
        if self.is_mobile is not None:
            kwargs["is_mobile"] = self.is_mobile
        if self.has_touch is not None:
            kwargs["has_touch"] = self.has_touch
        if self.geolocation is not None:
            kwargs["geolocation"] = dict(self.geolocation)
            kwargs["permissions"] = ["geolocation"]
        if self.http_credentials is not None:
            kwargs["http_credentials"] = dict(self.http_credentials)
        return kwargs
