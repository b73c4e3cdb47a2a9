"""Edge-triggered auto-scrolling while a drag is in progress."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .events import ScrollDirection
from .geometry import GeometryProbe, ScrollTarget
from .model import ScrollArea, Viewport
from .pointer import Point
from .scheduler import ScheduledCall, Scheduler

logger = logging.getLogger(__name__)


SCROLL_INTERVAL_MS = 20
EDGE_ZONE = 5
CONTAINER_STEP = 1
VIEWPORT_STEP = 5


class ScrollLoop:
    """One self-rescheduling scroll loop for a single direction."""

    def __init__(self, direction: ScrollDirection):
        self.direction = direction
        self.running = False
        self.target: Optional[ScrollTarget] = None
        self.handle: Optional[ScheduledCall] = None

    def __repr__(self) -> str:
        state = "running" if self.running else "idle"
        return f"<ScrollLoop {self.direction.value} {state}>"


class AutoScroller:
    """Scroll a container or the viewport while the pointer sits near its edge.

    ``on_tick`` is what the scheduler calls for each period; it defaults to
    :meth:`tick` and lets a controller route ticks through its own dispatch.
    """

    def __init__(
        self,
        viewport: Viewport,
        scheduler: Scheduler,
        probe: Optional[GeometryProbe] = None,
        on_tick: Optional[Callable[[ScrollDirection], None]] = None,
    ):
        self.viewport = viewport
        self.scheduler = scheduler
        self.probe = probe or GeometryProbe()
        self.on_tick = on_tick or self.tick
        self._loops: Dict[ScrollDirection, ScrollLoop] = {
            direction: ScrollLoop(direction) for direction in ScrollDirection
        }

    def loop(self, direction: ScrollDirection) -> ScrollLoop:
        return self._loops[direction]

    @property
    def running(self) -> bool:
        return any(loop.running for loop in self._loops.values())

    def evaluate(self, point: Point, area: Optional[ScrollArea] = None) -> Optional[ScrollDirection]:
        """Start or stop the loops for the latest pointer sample.

        The container's edge zones are checked first, then the viewport's.
        Returns the direction now scrolling, if any.
        """

        targets = [area, self.viewport] if area is not None else [self.viewport]
        for target in targets:
            top, bottom = self.probe.edges(target)
            if point.y < top + EDGE_ZONE:
                self._run(ScrollDirection.UP, target)
                return ScrollDirection.UP
            if point.y > bottom - EDGE_ZONE:
                self._run(ScrollDirection.DOWN, target)
                return ScrollDirection.DOWN

        self.cancel()
        return None

    def _run(self, direction: ScrollDirection, target: ScrollTarget) -> None:
        self.stop(direction.opposite)
        loop = self._loops[direction]
        if loop.running and loop.target is target:
            return
        self.stop(direction)
        loop.running = True
        loop.target = target
        logger.debug("Auto-scroll %s started on %r", direction.value, target)
        self.tick(direction)

    def tick(self, direction: ScrollDirection) -> bool:
        """Scroll one step; returns whether the loop rescheduled itself."""
        loop = self._loops[direction]
        loop.handle = None
        if not loop.running or loop.target is None:
            return False

        target = loop.target
        bounds = self.probe.scroll_bounds(target)
        upward = direction is ScrollDirection.UP
        if (upward and bounds.at_top) or (not upward and bounds.at_bottom):
            logger.debug("Auto-scroll %s reached its bound", direction.value)
            self.stop(direction)
            return False

        if isinstance(target, Viewport):
            target.scroll_by(-VIEWPORT_STEP if upward else VIEWPORT_STEP)
        else:
            step = -CONTAINER_STEP if upward else CONTAINER_STEP
            target.scroll_top = max(0.0, min(bounds.maximum, target.scroll_top + step))

        loop.handle = self.scheduler.call_later(SCROLL_INTERVAL_MS, lambda: self.on_tick(direction))
        return True

    def stop(self, direction: ScrollDirection) -> None:
        loop = self._loops[direction]
        if loop.handle is not None:
            loop.handle.cancel()
        loop.handle = None
        loop.running = False
        loop.target = None

    def cancel(self) -> None:
        for direction in ScrollDirection:
            self.stop(direction)
