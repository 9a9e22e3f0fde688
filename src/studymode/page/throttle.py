"""
Leading-edge throttle with a single coalesced trailing call.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class Throttle:
    """Rate-limit ``func`` to one call per window.

    The first call in a quiet window runs immediately. Calls arriving within
    the window collapse into one trailing call scheduled at the window's end.
    Timing uses the event loop's clock, so a fake loop makes it deterministic.
    """

    def __init__(
        self,
        func: Callable[[], None],
        window: float,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._func = func
        self._window = window
        self._loop = loop
        self._last: float | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        """Whether a trailing call is scheduled."""
        return self._handle is not None

    def __call__(self) -> None:
        now = self._loop.time()
        if self._last is None or now - self._last >= self._window:
            self._last = now
            self._func()
            return

        if self._handle is None:
            remaining = self._window - (now - self._last)
            self._handle = self._loop.call_later(remaining, self._run_trailing)

    def _run_trailing(self) -> None:
        self._handle = None
        self._last = self._loop.time()
        self._func()

    def cancel(self) -> None:
        """Drop a pending trailing call."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
