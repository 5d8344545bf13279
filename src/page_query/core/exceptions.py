"""Application-wide exception hierarchy for page-query.

All custom exceptions subclass ``PageQueryError``.  Each concrete class
carries a stable ``kind`` string so the query layer can map failures to
external responses without importing every class.

Hierarchy::

    PageQueryError
    ├── NavigationError
    │   ├── InvalidUrlError          (kind: InvalidUrl)
    │   ├── SslCertificateError      (kind: SslCertificateError)
    │   ├── NotAvailableError        (kind: NotAvailable)
    │   ├── RequestTimeoutError      (kind: RequestTimeout)
    │   ├── NoResponseError          (kind: NoResponse)
    │   └── NetworkError             (kind: NetworkError)
    ├── AccessDisallowedError        (kind: AccessDisallowed)
    └── DomError
        ├── InvalidSelectorError     (kind: InvalidSelector)
        └── NodeUnavailableError     (kind: NodeUnavailable)
"""

from __future__ import annotations


class PageQueryError(Exception):
    """Base class for all page-query exceptions.

    Args:
        message: Human-readable description of the failure.
        url: The URL the failure relates to, when known.
    """

    kind: str = "PageQueryError"

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


# ---------------------------------------------------------------------------
# Navigation exceptions
# ---------------------------------------------------------------------------


class NavigationError(PageQueryError):
    """Base class for failures loading a URL into a page or fetching text."""

    kind = "NavigationError"


class InvalidUrlError(NavigationError):
    """Raised when the URL is malformed or uses an unsupported scheme."""

    kind = "InvalidUrl"


class SslCertificateError(NavigationError):
    """Raised when the TLS handshake or certificate validation fails."""

    kind = "SslCertificateError"


class NotAvailableError(NavigationError):
    """Raised when the host cannot be resolved or refuses the connection."""

    kind = "NotAvailable"


class RequestTimeoutError(NavigationError):
    """Raised when a navigation exceeds its configured timeout."""

    kind = "RequestTimeout"


class NoResponseError(NavigationError):
    """Raised when a navigation finished without any response.

    The engine reports this when the navigation was aborted before the
    first response arrived; it is never treated as an empty success.
    """

    kind = "NoResponse"


class NetworkError(NavigationError):
    """Raised for any network failure not covered by a more specific kind."""

    kind = "NetworkError"


# ---------------------------------------------------------------------------
# Compliance exceptions
# ---------------------------------------------------------------------------


class AccessDisallowedError(PageQueryError):
    """Raised when robots.txt disallows the URL for the requesting agent.

    Args:
        url: The disallowed URL.
        user_agent: The agent token the policy was evaluated for.
    """

    kind = "AccessDisallowed"

    def __init__(self, url: str, user_agent: str | None = None) -> None:
        msg = f"URL is not allowed to fetch by robots.txt: {url}"
        if user_agent:
            msg += f" (user agent '{user_agent}')"
        super().__init__(msg, url=url)
        self.user_agent = user_agent


# ---------------------------------------------------------------------------
# DOM exceptions
# ---------------------------------------------------------------------------


class DomError(PageQueryError):
    """Base class for failures while reading the remote document."""

    kind = "DomError"


class InvalidSelectorError(DomError):
    """Raised when a CSS selector is syntactically invalid.

    Distinct from a selector that simply matches nothing, which yields
    ``None`` or an empty list.

    Args:
        selector: The rejected selector string.
        url: URL of the page the query ran against.
    """

    kind = "InvalidSelector"

    def __init__(self, selector: str, url: str | None = None) -> None:
        super().__init__(f"Selector is invalid: {selector!r}", url=url)
        self.selector = selector


class NodeUnavailableError(DomError):
    """Raised when the page backing a node is closed or the evaluation failed.

    The owning page and every node materialized from it must be considered
    dead; the error is not retried.
    """

    kind = "NodeUnavailable"
