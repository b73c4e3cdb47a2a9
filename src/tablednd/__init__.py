"""Drag-and-drop row reordering for tables, independent of any toolkit."""

from .autoscroll import AutoScroller
from .config import ButtonState, DragConfig, load_options
from .controller import DragSessionController, Draggable
from .events import (
    PointerActivate,
    PointerDown,
    PointerMove,
    PointerUp,
    ScrollDirection,
    ScrollTick,
)
from .feedback import Feedback, StyleFeedback
from .geometry import GeometryProbe, ScrollBounds
from .hit_test import HitTester
from .model import Cell, Document, Row, RowFlags, ScrollArea, Section, Table, Viewport
from .pointer import Point, PointerTracker
from .reorder import ReorderEngine, ReorderResult
from .scheduler import ManualScheduler
from .serialize import serialize, serialize_many
from .session import DragSession, SessionState

__version__ = "0.6.0"

__all__ = [
    "AutoScroller",
    "ButtonState",
    "Cell",
    "Document",
    "DragConfig",
    "DragSession",
    "DragSessionController",
    "Draggable",
    "Feedback",
    "GeometryProbe",
    "HitTester",
    "ManualScheduler",
    "Point",
    "PointerActivate",
    "PointerDown",
    "PointerMove",
    "PointerTracker",
    "PointerUp",
    "ReorderEngine",
    "ReorderResult",
    "Row",
    "RowFlags",
    "ScrollArea",
    "ScrollBounds",
    "ScrollDirection",
    "ScrollTick",
    "Section",
    "SessionState",
    "StyleFeedback",
    "Table",
    "Viewport",
    "load_options",
    "serialize",
    "serialize_many",
]
