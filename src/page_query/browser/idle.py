"""In-flight request tracking for network-idle waits.

Playwright's own ``networkidle`` only waits for zero connections.
:class:`NetworkIdleWatcher` generalises it to "at most N connections for a
quiet period", which is what ``WaitCondition.NETWORK_IDLE2`` needs.
"""

from __future__ import annotations

import asyncio

from playwright.async_api import Page, Request

#: How long the connection count must stay within budget (seconds).
QUIET_PERIOD: float = 0.5

_EVENTS: tuple[str, ...] = ("requestfinished", "requestfailed")


class NetworkIdleWatcher:
    """Count a page's in-flight requests and wait for a quiet window.

    Attach before navigating so the document request itself is counted.

    Args:
        max_inflight: Largest number of open requests still considered idle.
        quiet_period: Seconds the count must stay within budget.
    """

    def __init__(self, max_inflight: int, quiet_period: float = QUIET_PERIOD) -> None:
        self._max_inflight = max_inflight
        self._quiet_period = quiet_period
        self._inflight: set[Request] = set()
        self._idle = asyncio.Event()
        self._busy = asyncio.Event()
        self._idle.set()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def attach(self, page: Page) -> None:
        page.on("request", self.on_request)
        for event in _EVENTS:
            page.on(event, self.on_request_done)

    def detach(self, page: Page) -> None:
        page.remove_listener("request", self.on_request)
        for event in _EVENTS:
            page.remove_listener(event, self.on_request_done)

    def on_request(self, request: Request) -> None:
        self._inflight.add(request)
        self._update()

    def on_request_done(self, request: Request) -> None:
        self._inflight.discard(request)
        self._update()

    def _update(self) -> None:
        if len(self._inflight) > self._max_inflight:
            self._idle.clear()
            self._busy.set()
        else:
            self._busy.clear()
            self._idle.set()

    async def wait(self) -> None:
        """Return once the budget has held for a full quiet period.

        Not bounded on its own; wrap in :func:`asyncio.wait_for`.
        """
        while True:
            await self._idle.wait()
            try:
                await asyncio.wait_for(self._busy.wait(), timeout=self._quiet_period)
            except asyncio.TimeoutError:
                return
