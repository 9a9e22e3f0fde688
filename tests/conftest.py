"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest


class FakeTimerHandle:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manually advanced clock with ``time``/``call_later`` like an event loop."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimerHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback)
        self.timers.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running timers that come due in order."""
        target = self.now + seconds
        while True:
            due = sorted(
                (t for t in self.timers if not t.cancelled and t.when <= target),
                key=lambda t: t.when,
            )
            if not due:
                break
            timer = due[0]
            self.timers.remove(timer)
            self.now = max(self.now, timer.when)
            timer.callback()
        self.now = target


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


SAMPLE_PAGE = """
<html>
  <head><title>Article</title></head>
  <body>
    <main id="content">
      <p>Body text.</p>
      <article class="post">
        <div class="card">
          <div class="inner">
            <div class="label"><span aria-label="Sponsored">Sponsored</span></div>
          </div>
        </div>
      </article>
      <section class="ad-wrapper" style="display: flex; color: red">
        <div data-ad-slot="1234">Buy now</div>
      </section>
      <div class="discussion">
        <div class="panel">
          <div class="box">
            <div id="comments"><p>First!</p></div>
          </div>
        </div>
      </div>
    </main>
  </body>
</html>
"""


@pytest.fixture
def sample_page() -> str:
    return SAMPLE_PAGE
