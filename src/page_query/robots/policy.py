"""Parsed robots.txt rule sets.

Parsing and matching use :mod:`protego`, which follows RFC 9309: ``*`` and
``$`` are path wildcards, and the longest matching rule wins, with ``Allow``
winning ties.  A policy built from an empty body allows everything, which is
how failed fetches end up permissive.
"""

from __future__ import annotations

import urllib.parse

from protego import Protego

#: Well-known path of the robots exclusion document.
ROBOTS_PATH: str = "/robots.txt"

#: Agent token used when the caller does not supply one.
DEFAULT_USER_AGENT: str = "*"


def build_policy_url(url: str) -> str:
    """Return the robots.txt URL for the origin (scheme + host) of ``url``.

    User info in the authority is dropped; the port is kept.

    Args:
        url: Any absolute URL.

    Returns:
        ``"<scheme>://<host[:port]>/robots.txt"``.
    """
    parsed = urllib.parse.urlsplit(url)
    host = parsed.netloc.rsplit("@", 1)[-1]
    return f"{parsed.scheme}://{host}{ROBOTS_PATH}"


class RobotsPolicy:
    """Allow/disallow rules for one origin.

    Args:
        rules: Parsed robots.txt body.
        url: The robots.txt URL the rules were read from.
    """

    def __init__(self, rules: Protego, url: str) -> None:
        self._rules = rules
        self.url = url

    @classmethod
    def parse(cls, text: str, url: str) -> RobotsPolicy:
        """Build a policy from a robots.txt body.

        Args:
            text: Raw robots.txt content.  May be empty.
            url: The robots.txt URL the content came from.

        Returns:
            A :class:`RobotsPolicy`.
        """
        return cls(Protego.parse(text), url)

    def is_allowed(self, url: str, user_agent: str | None = None) -> bool:
        """Return ``True`` if ``user_agent`` may fetch ``url``.

        The group whose agent token is the longest substring of
        ``user_agent`` applies, falling back to ``*``.  Within it the longest
        matching path rule decides; a URL matched by no rule is allowed.

        Args:
            url: Absolute URL on this policy's origin.
            user_agent: Product token to evaluate for.  ``None`` means ``*``.
        """
        return self._rules.can_fetch(url, user_agent or DEFAULT_USER_AGENT)

    def __repr__(self) -> str:
        return f"RobotsPolicy(url={self.url!r})"
