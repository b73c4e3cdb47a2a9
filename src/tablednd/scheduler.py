"""Timer abstraction used by the auto-scroll loops.

The GTK binding provides a GLib main-loop implementation; ``ManualScheduler``
lets headless hosts advance time explicitly.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Protocol, Tuple


class ScheduledCall(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledCall:
        ...


class _ManualCall:
    def __init__(self, due: int, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """A scheduler whose clock only moves when :meth:`advance` is called."""

    def __init__(self):
        self.now = 0
        self._queue: List[Tuple[int, int, _ManualCall]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualCall:
        call = _ManualCall(self.now + max(0, int(delay_ms)), callback)
        heapq.heappush(self._queue, (call.due, next(self._counter), call))
        return call

    @property
    def pending(self) -> int:
        return sum(1 for _due, _seq, call in self._queue if not call.cancelled)

    def advance(self, ms: int) -> int:
        """Run every callback due within the next ``ms``; returns how many ran."""
        deadline = self.now + int(ms)
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _seq, call = heapq.heappop(self._queue)
            self.now = due
            if call.cancelled:
                continue
            call.callback()
            ran += 1
        self.now = deadline
        return ran
