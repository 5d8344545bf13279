"""Query-layer input models."""

from __future__ import annotations

from page_query.query.options import (
    Cookie,
    Credentials,
    FetchOptions,
    Location,
    SameSite,
    Viewport,
    validate_url,
)

__all__ = [
    "Cookie",
    "Credentials",
    "FetchOptions",
    "Location",
    "SameSite",
    "Viewport",
    "validate_url",
]
