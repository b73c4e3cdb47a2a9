"""Transient state of one drag gesture."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .model import Row, Section
from .pointer import Point


class SessionState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"


@dataclass
class DragSession:
    """State between a pointer press and its release.

    ``added`` holds the rows this press accumulated, so an aborted or
    click-only press can revert them without touching an earlier toggle
    selection.
    """

    origin: Point
    anchor: Row
    container: Section
    state: SessionState = SessionState.ARMED
    last_y: float = 0.0
    anchor_offset: Optional[Point] = None
    added: List[Row] = field(default_factory=list)
