"""Typed input events dispatched into the drag session controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from .model import Element


PRIMARY_BUTTON = 0
MIDDLE_BUTTON = 1
SECONDARY_BUTTON = 2

MODIFIERS = ("shift", "ctrl", "alt", "meta")


class ScrollDirection(Enum):
    UP = "up"
    DOWN = "down"

    @property
    def opposite(self) -> "ScrollDirection":
        return ScrollDirection.DOWN if self is ScrollDirection.UP else ScrollDirection.UP


@dataclass(frozen=True)
class PointerEvent:
    """Raw pointer sample.

    ``page_x``/``page_y`` are document coordinates when the input source
    reports them; otherwise only the viewport-relative ``client_x``/``client_y``
    are known and the tracker adds the viewport scroll offset.
    """

    client_x: float = 0.0
    client_y: float = 0.0
    page_x: Optional[float] = None
    page_y: Optional[float] = None
    target: Optional[Element] = None
    button: int = PRIMARY_BUTTON
    modifiers: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class PointerDown(PointerEvent):
    pass


@dataclass(frozen=True)
class PointerMove(PointerEvent):
    pass


@dataclass(frozen=True)
class PointerUp(PointerEvent):
    pass


@dataclass(frozen=True)
class PointerActivate(PointerEvent):
    """Secondary activation (double click) toggling a row in the selection."""


@dataclass(frozen=True)
class ScrollTick:
    direction: ScrollDirection
