"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at process startup (the CLI in
``scripts/fetch_document.py`` does).  Modules then use either the stdlib
logging API or structlog directly:

Stdlib usage (browser, robots and DOM layers)::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("browser: received status %d from %s", status, url)

Structlog usage (orchestration layer, key/value events)::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("document.fetched", url=url)

:meth:`page_query.service.DocumentService.request_scope` binds
``request_id`` with :func:`structlog.contextvars.bound_contextvars`; both
APIs pick it up through ``merge_contextvars``.

Fetch options carry secrets (basic-auth credentials, cookies, auth headers,
user info in URLs).  :func:`redact_fetch_secrets` masks them in any event
that logs those fields, before a renderer sees the record.
"""

from __future__ import annotations

import logging
import sys
import urllib.parse
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

REDACTED = "[REDACTED]"

#: Request header names (lower case) whose values are never logged.
SENSITIVE_HEADERS: frozenset[str] = frozenset({
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
})

#: Event keys holding credentials; the whole value is masked.
CREDENTIAL_KEYS: tuple[str, ...] = ("credentials", "http_credentials")

#: Loggers held at WARNING outside DEBUG.
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "asyncio")


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


def _mask_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    return {
        name: REDACTED if str(name).lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


def _mask_cookies(cookies: list[Any]) -> list[Any]:
    return [
        {**cookie, "value": REDACTED} if isinstance(cookie, Mapping) and "value" in cookie else cookie
        for cookie in cookies
    ]


def _mask_url_password(url: str) -> str:
    parsed = urllib.parse.urlsplit(url)
    if parsed.password is None:
        return url
    userinfo, _, hostport = parsed.netloc.rpartition("@")
    username = userinfo.split(":", 1)[0]
    return urllib.parse.urlunsplit(parsed._replace(netloc=f"{username}:{REDACTED}@{hostport}"))


def redact_fetch_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask secrets carried by fetch options.

    * ``headers``: values of :data:`SENSITIVE_HEADERS`, matched
      case-insensitively.
    * ``cookies``: the ``value`` of each cookie; name, domain and path stay.
    * :data:`CREDENTIAL_KEYS`: the whole value.
    * ``url``: the password in the authority, if any.
    """
    headers = event_dict.get("headers")
    if isinstance(headers, Mapping):
        event_dict["headers"] = _mask_headers(headers)

    cookies = event_dict.get("cookies")
    if isinstance(cookies, list):
        event_dict["cookies"] = _mask_cookies(cookies)

    for key in CREDENTIAL_KEYS:
        if event_dict.get(key) is not None:
            event_dict[key] = REDACTED

    url = event_dict.get("url")
    if isinstance(url, str) and "@" in url:
        event_dict["url"] = _mask_url_password(url)
    return event_dict


# ---------------------------------------------------------------------------
# Public configuration entry-point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog and stdlib logging.

    Outside DEBUG, outputs newline-delimited JSON.  With ``"DEBUG"`` uses
    structlog's ``ConsoleRenderer``.

    Every record carries ``timestamp``, ``level``, ``logger`` and ``event``,
    plus ``request_id`` inside a request scope.  Calling it more than once
    replaces the previous configuration.

    Args:
        log_level: ``"DEBUG"``, ``"INFO"``, ``"WARNING"``, ``"ERROR"`` or
            ``"CRITICAL"``.  Case-insensitive.
    """
    level_upper = log_level.upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    is_development = level_upper == "DEBUG"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_fetch_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor
    if is_development:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    # Browser and robots modules log through stdlib; render them the same way.
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    quiet_level = logging.NOTSET if is_development else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
