"""Pointer coordinate normalisation."""

from __future__ import annotations

from dataclasses import dataclass

from .events import PointerEvent
from .model import Viewport


@dataclass(frozen=True)
class Point:
    x: float
    y: float


class PointerTracker:
    """Translate raw pointer events into document-space points."""

    def __init__(self, viewport: Viewport):
        self.viewport = viewport

    def coords(self, event: PointerEvent) -> Point:
        if event.page_x is not None and event.page_y is not None:
            return Point(float(event.page_x), float(event.page_y))
        return Point(
            float(event.client_x) + self.viewport.scroll_x,
            float(event.client_y) + self.viewport.scroll_y,
        )
