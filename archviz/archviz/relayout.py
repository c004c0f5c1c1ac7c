"""Debounced relayout.

Bursts of filter changes each ask for a complete relayout. The coalescer
keeps at most one deferred relayout armed: every new request cancels the
pending timer and arms a fresh one, so a burst settles into a single pass.

This is best effort. If the scheduler gets a turn between two requests of
the same burst, the first timer fires and a second relayout follows. That
is accepted; the relayout is always able to run and is idempotent.

Schedulers follow the ``call_later(delay, callback) -> handle`` contract of
``asyncio`` event loops, where ``handle.cancel()`` disarms the timer. An
asyncio loop can therefore be passed directly.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Any, Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Deferred single-shot tasks on the caller's own event loop."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class _ManualTimer:
    def __init__(self, due: float, seq: int, callback: Callable[..., Any], args: tuple):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "_ManualTimer") -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class ManualScheduler:
    """Scheduler whose timers fire only when the owner calls `run_due`.

    With no clock given it keeps a virtual clock moved by `advance`, which
    makes timing deterministic in tests. With a real clock (for example
    ``time.monotonic``) a polling loop calls `run_due` on every turn.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock
        self._virtual_now = 0.0
        self._timers: list[_ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._clock() if self._clock is not None else self._virtual_now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> _ManualTimer:
        timer = _ManualTimer(self.now() + max(delay, 0.0), next(self._seq), callback, args)
        heapq.heappush(self._timers, timer)
        return timer

    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def run_due(self) -> int:
        """Fire every timer whose due time has passed; returns how many fired."""
        fired = 0
        while self._timers and self._timers[0].due <= self.now():
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            timer.callback(*timer.args)
            fired += 1
        return fired

    def advance(self, seconds: float) -> int:
        """Move the virtual clock forward and fire what became due."""
        if self._clock is not None:
            raise RuntimeError("advance() needs the virtual clock; this scheduler uses a real one")
        self._virtual_now += seconds
        return self.run_due()


class RelayoutCoalescer:
    """Re-armable single-shot relayout: `Idle -> Scheduled -> Idle`."""

    def __init__(self, scheduler: Scheduler, delay: float = 0.0):
        self._scheduler = scheduler
        self.delay = delay
        self._pending: TimerHandle | None = None
        self.relayout_count = 0

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def schedule_relayout(self, relayout: Callable[[], Any]) -> None:
        if self._pending is not None:
            self._pending.cancel()
            logger.debug("Re-arming pending relayout")
        self._pending = self._scheduler.call_later(self.delay, self._fire, relayout)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self, relayout: Callable[[], Any]) -> None:
        self._pending = None
        self.relayout_count += 1
        started = time.perf_counter()
        relayout()
        logger.debug(
            "Relayout #%d took %.1f ms", self.relayout_count, (time.perf_counter() - started) * 1000
        )
