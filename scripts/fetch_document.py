#!/usr/bin/env python
"""Fetch a page through the full pipeline and print what was found.

Runs the robots.txt check, renders the page in headless Chromium and prints
the document title followed by the matching elements.  Useful for checking
a site by hand before wiring it into the query layer.

Usage::

    python scripts/fetch_document.py URL [--selector S] [--wait-until W]
        [--user-agent UA] [--no-javascript] [--ignore-robots] [--timeout T]
        [--text]

Browser and cache settings come from the environment / ``.env`` as usual
(``BROWSER_EXECUTABLE_PATH``, ``BROWSER_HEADLESS``, ``REDIS_URL``, ...).

Exit codes:
    0 — Page fetched.
    1 — Invalid options, robots.txt disallowed the URL, or navigation failed.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure the src layout is on sys.path when running as a standalone script.
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.join(os.path.dirname(_SCRIPT_DIR), "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch a page and print its document.")
    parser.add_argument("url", help="Absolute http(s) URL to fetch")
    parser.add_argument(
        "--selector",
        default="body",
        help="CSS selector of the elements to print (default: body)",
    )
    parser.add_argument(
        "--wait-until",
        default="LOAD",
        help="LOAD, DOM_CONTENT_LOADED, NETWORK_IDLE0 or NETWORK_IDLE2 (default: LOAD)",
    )
    parser.add_argument("--user-agent", default=None, help="User-Agent override")
    parser.add_argument(
        "--no-javascript",
        action="store_true",
        help="Disable page scripts",
    )
    parser.add_argument(
        "--ignore-robots",
        action="store_true",
        help="Skip the robots.txt check",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Navigation timeout in seconds")
    parser.add_argument(
        "--text",
        action="store_true",
        help="Print text content instead of outer HTML",
    )
    return parser.parse_args(argv)


async def _fetch(args: argparse.Namespace) -> int:
    """Fetch ``args.url`` and print the title and matching elements.

    Returns:
        The process exit code.
    """
    from pydantic import ValidationError  # noqa: PLC0415

    from page_query.config.settings import get_settings  # noqa: PLC0415
    from page_query.core.exceptions import PageQueryError  # noqa: PLC0415
    from page_query.core.logging_config import configure_logging  # noqa: PLC0415
    from page_query.query.options import FetchOptions  # noqa: PLC0415
    from page_query.service import DocumentService  # noqa: PLC0415

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        options = FetchOptions(
            timeout=args.timeout,
            user_agent=args.user_agent,
            javascript_enabled=not args.no_javascript,
            wait_until=args.wait_until,
            ignore_robots_txt=args.ignore_robots,
        )
    except ValidationError as exc:
        print(f"[fetch_document] Invalid options:\n{exc}", file=sys.stderr)
        return 1

    service = DocumentService.from_settings(settings)
    try:
        async with service.request_scope():
            try:
                document = await service.fetch(args.url, options)
                robots = "skipped" if args.ignore_robots else "allowed"
                print(f"[fetch_document] robots.txt: {robots}")
                print(f"[fetch_document] title: {document.title!r}")

                elements = await document.query_selector_all(args.selector)
                print(f"[fetch_document] {len(elements)} element(s) match {args.selector!r}")
                for element in elements:
                    if args.text:
                        print(element.text_content or "")
                    else:
                        print(await element.outer_html())
            except PageQueryError as exc:
                print(f"[fetch_document] {exc.kind}: {exc}", file=sys.stderr)
                return 1
    finally:
        await service.aclose()
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the fetch script.

    Wraps the async coroutine in ``asyncio.run``.
    """
    sys.exit(asyncio.run(_fetch(_parse_args(argv))))


if __name__ == "__main__":
    main()
