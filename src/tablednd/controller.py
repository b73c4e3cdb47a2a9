"""The drag session state machine.

A :class:`DragSessionController` owns the drag state of one table. Input
arrives as typed events through :meth:`DragSessionController.dispatch`;
each call runs to completion, so hit-testing, reordering and the auto-scroll
re-evaluation of a move always use that move's pointer sample.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from .autoscroll import AutoScroller
from .config import DragConfig
from .events import (
    PointerActivate,
    PointerDown,
    PointerMove,
    PointerUp,
    ScrollTick,
)
from .feedback import Feedback, StyleFeedback
from .geometry import GeometryProbe, resolve_scroll_target
from .hit_test import HitTester
from .model import Element, Row, Section, Table, Viewport, document_of, document_order
from .pointer import Point, PointerTracker
from .reorder import ReorderEngine
from .scheduler import ManualScheduler, Scheduler
from .serialize import serialize
from .session import DragSession, SessionState

logger = logging.getLogger(__name__)


DEADZONE = 3

_REFUSED_TAGS = {"table", "tbody", "thead", "tfoot", "th"}


@dataclass(frozen=True)
class Draggable:
    """A capable row together with the container it would be dragged in."""

    container: Section
    row: Row


class DragSessionController:
    def __init__(
        self,
        table: Table,
        config: Union[DragConfig, Mapping[str, Any], None] = None,
        feedback: Optional[Feedback] = None,
        scheduler: Optional[Scheduler] = None,
        viewport: Optional[Viewport] = None,
    ):
        if not isinstance(config, DragConfig):
            config = DragConfig.from_options(config)
        if viewport is None:
            document = document_of(table)
            if document is None:
                raise ValueError("Table must belong to a Document when no viewport is given")
            viewport = document.viewport

        self.table = table
        self.config = config
        self.feedback = feedback or StyleFeedback(config)
        self.viewport = viewport
        self.probe = GeometryProbe()
        self.tracker = PointerTracker(viewport)
        self.hit_tester = HitTester(self.probe)
        self.engine = ReorderEngine()
        self.autoscroller = AutoScroller(
            viewport,
            scheduler or ManualScheduler(),
            self.probe,
            on_tick=lambda direction: self.dispatch(ScrollTick(direction)),
        )

        self._session: Optional[DragSession] = None
        self._selection: List[Row] = []
        self._selection_container: Optional[Section] = None
        self._handlers = {
            PointerDown: self._on_pointer_down,
            PointerMove: self._on_pointer_move,
            PointerUp: self._on_pointer_up,
            PointerActivate: self._on_activate,
            ScrollTick: self._on_scroll_tick,
        }

    # -- public API -------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._session.state if self._session is not None else SessionState.IDLE

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    @property
    def drag_set(self) -> Tuple[Row, ...]:
        return tuple(self._selection)

    @property
    def selection(self) -> Tuple[Row, ...]:
        """Rows picked by activation toggles, without those the current press added."""
        added = self._session.added if self._session is not None else ()
        return tuple(row for row in self._selection if not any(row is new for new in added))

    @property
    def container(self) -> Optional[Section]:
        return self._selection_container

    def dispatch(self, event) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug("Ignoring unsupported event %r", event)
            return
        handler(event)

    def serialize(self) -> str:
        return serialize(self.table, self.config.serialize_pattern)

    def reset(self) -> None:
        """Drop any session and selection without invoking hooks."""
        self.autoscroller.cancel()
        self._session = None
        self._clear_selection()

    def resolve_draggable(self, target: Optional[Element]) -> Optional[Draggable]:
        """Return the row ``target`` would drag, or ``None`` when it is not draggable."""

        if target is None or target.tag in _REFUSED_TAGS:
            return None

        element = target
        if element.tag not in ("td", "tr"):
            element = element.closest("td")
            if element is None:
                return None

        handle = self.config.drag_handle
        if handle:
            if element.tag == "td" and element.has_class(handle):
                cells = [element]
            else:
                cells = element.find_all("td", handle)
            if not cells:
                return None
            row = cells[0].parent
        elif element.tag == "td":
            row = element.parent
        else:
            row = element

        if not isinstance(row, Row) or row.flags.nodrag:
            return None
        body = row.parent
        if not isinstance(body, Section) or not body.is_container or body.parent is not self.table:
            return None
        return Draggable(body, row)

    # -- event handlers ---------------------------------------------------

    def _on_pointer_down(self, event: PointerDown) -> None:
        if self._session is not None:
            logger.debug("Pointer pressed during a live session; ending it first")
            self._end_session()

        if not self.config.button_state.accepts(event):
            return

        handle = self.config.drag_handle
        if handle:
            cell = event.target.closest("td") if event.target is not None else None
            if cell is None or not cell.has_class(handle):
                return

        draggable = self.resolve_draggable(event.target)
        if draggable is None:
            return

        point = self.tracker.coords(event)
        self._session = DragSession(origin=point, anchor=draggable.row, container=draggable.container)
        logger.debug("Session armed on %r at y=%s", draggable.row, point.y)

    def _on_pointer_move(self, event: PointerMove) -> None:
        session = self._session
        if session is None:
            return

        point = self.tracker.coords(event)
        if session.state is SessionState.ARMED:
            draggable = self.resolve_draggable(event.target)
            if draggable is not None:
                self._accumulate(draggable, session)
            if abs(point.y - session.origin.y) <= DEADZONE:
                return
            if not self._selection:
                logger.debug("Nothing draggable under the pointer; aborting session")
                self._abort(session)
                return
            self._start_drag(session, point)

        self._drag_to(session, point)

    def _on_pointer_up(self, event: PointerUp) -> None:
        if self._session is not None:
            self._end_session()

    def _on_activate(self, event: PointerActivate) -> None:
        if self.state is SessionState.DRAGGING:
            return
        draggable = self.resolve_draggable(event.target)
        if draggable is None:
            return

        self._switch_container(draggable.container)
        row = draggable.row
        if self._selected(row):
            self._deselect(row)
        else:
            self._select(row)

    def _on_scroll_tick(self, event: ScrollTick) -> None:
        self.autoscroller.tick(event.direction)

    # -- session steps ----------------------------------------------------

    def _start_drag(self, session: DragSession, point: Point) -> None:
        self._selection = document_order(self._selection)
        session.container = self._selection_container
        anchor = session.anchor if self._selected(session.anchor) else self._selection[0]
        session.anchor = anchor

        position = self.probe.position(anchor)
        session.anchor_offset = Point(point.x - position.x, point.y - position.y)
        session.last_y = session.origin.y - session.anchor_offset.y
        session.state = SessionState.DRAGGING
        logger.debug("Drag started with %d row(s)", len(self._selection))

        self._call_hook("on_drag_start", self.table, list(self._selection))
        self.feedback.set_cursor(self.table, "move")

    def _drag_to(self, session: DragSession, point: Point) -> None:
        area = resolve_scroll_target(self.table, self.config.container_id)
        self.autoscroller.evaluate(point, area)

        y = point.y - session.anchor_offset.y
        if y == session.last_y:
            return
        upward = y < session.last_y

        target = self.hit_tester.find_target(
            y,
            upward,
            session.container.visible_rows,
            self._selection,
            self.config.on_allow_drop,
        )
        if target is not None:
            result = self.engine.reorder(self._selection, target, upward)
            if result.moved:
                self._call_hook("on_rows_changed", self.table, list(self._selection), result.target)
        session.last_y = y

    def _end_session(self) -> None:
        session = self._session
        self._session = None
        self.autoscroller.cancel()
        if session is None:
            return

        if session.state is not SessionState.DRAGGING:
            self._discard_added(session)
            return

        rows = list(self._selection)
        for row in rows:
            self.feedback.hide_drag(row)
        for row in rows:
            self.feedback.show_dropped(row)
        self.feedback.set_cursor(self.table, "auto")
        self._selection = []
        self._selection_container = None
        logger.debug("Dropped %d row(s)", len(rows))
        self._call_hook("on_drop", self.table, rows)

    def _abort(self, session: DragSession) -> None:
        self._session = None
        self.autoscroller.cancel()
        self._discard_added(session)

    # -- selection --------------------------------------------------------

    def _accumulate(self, draggable: Draggable, session: DragSession) -> None:
        self._switch_container(draggable.container)
        session.container = draggable.container
        if not self._selected(draggable.row):
            self._select(draggable.row)
            session.added.append(draggable.row)

    def _switch_container(self, container: Section) -> None:
        if self._selection_container is container:
            return
        if self._selection:
            logger.debug("Drag set moved to another container; clearing it")
        self._clear_selection()
        self._selection_container = container

    def _selected(self, row: Row) -> bool:
        return any(row is member for member in self._selection)

    def _select(self, row: Row) -> None:
        self._selection.append(row)
        self.feedback.show_drag(row)

    def _deselect(self, row: Row) -> None:
        self._selection = [member for member in self._selection if member is not row]
        self.feedback.hide_drag(row)
        if not self._selection:
            self._selection_container = None

    def _discard_added(self, session: DragSession) -> None:
        for row in session.added:
            if self._selected(row):
                self._deselect(row)

    def _clear_selection(self) -> None:
        for row in self._selection:
            self.feedback.hide_drag(row)
        self._selection = []
        self._selection_container = None

    def _call_hook(self, name: str, *args):
        hook = getattr(self.config, name)
        if hook is None:
            return None
        try:
            return hook(*args)
        except Exception as e:
            logger.error(f"Error in {name} hook: {e}")
            return None
