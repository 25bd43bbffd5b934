"""TickScheduler — cooperative, single-threaded timer source.

Callbacks never run on their own: the owner polls ``run_pending()`` from
its loop, and only callbacks whose due time has passed fire. A late poll
delays a tick but never fires extra ones for the time that was missed,
since each callback schedules its successor relative to when it ran.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback. Cancelling is idempotent."""

    __slots__ = ("due", "callback", "cancelled")

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"TimerHandle(due={self.due:.3f}, {state})"


class TickScheduler:
    """Min-heap of timer handles keyed by due time (seconds)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._heap: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        handle = TimerHandle(self._clock() + delay_ms / 1000.0, callback)
        heapq.heappush(self._heap, (handle.due, next(self._counter), handle))
        return handle

    def next_due(self) -> float | None:
        """Due time of the earliest live handle, or None when idle."""
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0][0] if self._heap else None

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._heap if not h.cancelled)

    def run_pending(self) -> int:
        """Fire every live handle that is due now. Returns how many fired.

        Handles scheduled by a firing callback are due strictly later
        (for positive delays) and wait for the next poll.
        """
        now = self._clock()
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.cancelled = True
            handle.callback()
            fired += 1
        if fired > 1:
            logger.debug("Fired %d timers in one poll", fired)
        return fired
