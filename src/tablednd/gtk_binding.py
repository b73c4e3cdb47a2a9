"""Bind a GTK 4 ``Gtk.ListBox`` to a :class:`DragSessionController`.

The list's rows are mirrored into a one-body table, pointer gestures on the
list are translated into typed events, reorders are applied back to the
list, and auto-scroll drives the enclosing ``Gtk.ScrolledWindow``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import gi
gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
from gi.repository import Gdk, GLib, Gtk

from .config import DragConfig
from .controller import DragSessionController
from .events import (
    MIDDLE_BUTTON,
    PRIMARY_BUTTON,
    SECONDARY_BUTTON,
    PointerActivate,
    PointerDown,
    PointerMove,
    PointerUp,
)
from .feedback import StyleFeedback
from .model import Cell, Document, Element, Row, Section, Table, Viewport

logger = logging.getLogger(__name__)


_GDK_BUTTONS = {1: PRIMARY_BUTTON, 2: MIDDLE_BUTTON, 3: SECONDARY_BUTTON}


# ---------------------------------------------------------------------------
# Main-loop timers
# ---------------------------------------------------------------------------


class _GLibCall:
    def __init__(self, delay_ms: int, callback: Callable[[], None]):
        self._callback = callback
        self.source_id: Optional[int] = GLib.timeout_add(max(1, int(delay_ms)), self._fire)

    def _fire(self):
        self.source_id = None
        try:
            self._callback()
        except Exception as e:
            logger.error(f"Error in scheduled callback: {e}")
        return GLib.SOURCE_REMOVE

    def cancel(self) -> None:
        if self.source_id is not None:
            GLib.source_remove(self.source_id)
            self.source_id = None


class GLibScheduler:
    """Scheduler backed by ``GLib.timeout_add``."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _GLibCall:
        return _GLibCall(delay_ms, callback)


# ---------------------------------------------------------------------------
# Model mirroring
# ---------------------------------------------------------------------------


class AdjustmentViewport(Viewport):
    """A viewport whose scroll state lives in a ``Gtk.Adjustment``."""

    scroll_x = 0.0
    content: Optional[Element] = None

    def __init__(self, adjustment: Gtk.Adjustment):
        self.adjustment = adjustment

    @property
    def height(self) -> float:
        return self.adjustment.get_page_size()

    @property
    def scroll_y(self) -> float:
        return self.adjustment.get_value()

    @scroll_y.setter
    def scroll_y(self, value: float) -> None:
        self.adjustment.set_value(value)

    @property
    def document_height(self) -> float:
        return self.adjustment.get_upper() - self.adjustment.get_lower()


class WidgetViewport(Viewport):
    """A viewport that cannot scroll, sized by a widget's current height."""

    scroll_x = 0.0
    scroll_y = 0.0
    content: Optional[Element] = None

    def __init__(self, widget: Gtk.Widget):
        self.widget = widget

    @property
    def height(self) -> float:
        return float(self.widget.get_height())

    @property
    def document_height(self) -> float:
        return self.height


class CssFeedback(StyleFeedback):
    """Mirror drag feedback onto the row widgets as CSS classes."""

    def __init__(self, config: DragConfig, binding: "ListBoxReorder"):
        super().__init__(config)
        self.binding = binding

    def _classes(self) -> List[str]:
        return (self.config.drag_class or "").split()

    def show_drag(self, row: Row) -> None:
        super().show_drag(row)
        widget = self.binding.widget_for(row)
        if widget is not None:
            for name in self._classes():
                widget.add_css_class(name)

    def hide_drag(self, row: Row) -> None:
        super().hide_drag(row)
        widget = self.binding.widget_for(row)
        if widget is not None:
            for name in self._classes():
                widget.remove_css_class(name)

    def set_cursor(self, element: Element, cursor: str) -> None:
        super().set_cursor(element, cursor)
        self.binding.listbox.set_cursor_from_name(None if cursor == "auto" else cursor)


class ListBoxReorder:
    """Reorder the rows of ``listbox`` by dragging them.

    Row widgets carrying the ``nodrag``/``nodrop``/``nodropbefore``/
    ``nodropafter`` CSS classes get the matching behaviour. The widget name
    of a row is its id for serialisation.
    """

    def __init__(
        self,
        listbox: Gtk.ListBox,
        scrolled: Optional[Gtk.ScrolledWindow] = None,
        config: Union[DragConfig, Mapping[str, Any], None] = None,
        table_id: str = "list",
    ):
        if not isinstance(config, DragConfig):
            config = DragConfig.from_options(config)

        self.listbox = listbox
        self.scrolled = scrolled
        self._user_rows_changed = config.on_rows_changed
        config = replace(config, on_rows_changed=self._on_rows_changed)

        if scrolled is not None:
            viewport = AdjustmentViewport(scrolled.get_vadjustment())
        else:
            viewport = WidgetViewport(listbox)
        self.document = Document(viewport=viewport)
        self.body = Section(f"{table_id}-body")
        self.table = Table(table_id, [self.body])
        self.document.append(self.table)

        self._widgets: Dict[Row, Gtk.ListBoxRow] = {}
        self._rows: Dict[Gtk.ListBoxRow, Row] = {}
        self._start = (0.0, 0.0)

        self.controller = DragSessionController(
            self.table,
            config,
            feedback=CssFeedback(config, self),
            scheduler=GLibScheduler(),
            viewport=viewport,
        )
        self._install_controllers()
        self.refresh()

    def _install_controllers(self) -> None:
        drag = Gtk.GestureDrag.new()
        drag.set_button(0)
        drag.connect("drag-begin", self._on_drag_begin)
        drag.connect("drag-update", self._on_drag_update)
        drag.connect("drag-end", self._on_drag_end)
        self.listbox.add_controller(drag)

        click = Gtk.GestureClick.new()
        click.set_button(0)
        click.connect("pressed", self._on_pressed)
        self.listbox.add_controller(click)

    # -- mirroring ----------------------------------------------------------

    def list_rows(self) -> List[Gtk.ListBoxRow]:
        rows = []
        child = self.listbox.get_first_child()
        while child is not None:
            if isinstance(child, Gtk.ListBoxRow):
                rows.append(child)
            child = child.get_next_sibling()
        return rows

    def refresh(self) -> None:
        """Rebuild the model from the list's current rows and sizes."""
        handle = self.controller.config.drag_handle
        for row in list(self.body.rows):
            row.remove()
        self._widgets.clear()
        self._rows.clear()

        for widget in self.list_rows():
            classes = [name for name in widget.get_css_classes() if name.startswith("nodr")]
            row = Row(widget.get_name() or "", classes, height=widget.get_height(), visible=widget.get_visible())
            row.append(Cell())
            if handle:
                row.append(Cell(classes=[handle]))
            self.body.append(row)
            self._widgets[row] = widget
            self._rows[widget] = row

    def _idle(self) -> bool:
        # A toggle selection refers to the current model rows; keep them.
        return self.controller.session is None and not self.controller.drag_set

    def widget_for(self, row: Row) -> Optional[Gtk.ListBoxRow]:
        return self._widgets.get(row)

    def _target_at(self, x: float, y: float) -> Optional[Element]:
        widget = self.listbox.get_row_at_y(int(y))
        row = self._rows.get(widget) if widget is not None else None
        if row is None:
            return None

        handle = self.controller.config.drag_handle
        if handle:
            picked = self.listbox.pick(x, y, Gtk.PickFlags.DEFAULT)
            while picked is not None and picked is not widget:
                if picked.has_css_class(handle):
                    return row.cells[-1]
                picked = picked.get_parent()
        return row.cells[0]

    def _apply_order(self) -> None:
        for index, row in enumerate(self.body.rows):
            widget = self._widgets[row]
            if self.listbox.get_row_at_index(index) is not widget:
                self.listbox.remove(widget)
                self.listbox.insert(widget, index)

    # -- gesture handlers ---------------------------------------------------

    def _event_kwargs(self, gesture: Gtk.Gesture, x: float, y: float) -> dict:
        state = gesture.get_current_event_state()
        modifiers = set()
        if state & Gdk.ModifierType.SHIFT_MASK:
            modifiers.add("shift")
        if state & Gdk.ModifierType.CONTROL_MASK:
            modifiers.add("ctrl")
        if state & Gdk.ModifierType.ALT_MASK:
            modifiers.add("alt")
        if state & Gdk.ModifierType.META_MASK:
            modifiers.add("meta")
        return dict(
            client_x=x,
            client_y=y - self.controller.viewport.scroll_y,
            page_x=x,
            page_y=y,
            target=self._target_at(x, y),
            button=_GDK_BUTTONS.get(gesture.get_current_button(), PRIMARY_BUTTON),
            modifiers=frozenset(modifiers),
        )

    def _on_drag_begin(self, gesture, start_x, start_y):
        if self._idle():
            self.refresh()
        self._start = (start_x, start_y)
        self.controller.dispatch(PointerDown(**self._event_kwargs(gesture, start_x, start_y)))

    def _on_drag_update(self, gesture, offset_x, offset_y):
        x = self._start[0] + offset_x
        y = self._start[1] + offset_y
        self.controller.dispatch(PointerMove(**self._event_kwargs(gesture, x, y)))

    def _on_drag_end(self, gesture, offset_x, offset_y):
        x = self._start[0] + offset_x
        y = self._start[1] + offset_y
        self.controller.dispatch(PointerUp(**self._event_kwargs(gesture, x, y)))

    def _on_pressed(self, gesture, n_press, x, y):
        if n_press != 2:
            return
        if self._idle():
            self.refresh()
        self.controller.dispatch(PointerActivate(**self._event_kwargs(gesture, x, y)))

    def _on_rows_changed(self, table, rows, target):
        try:
            self._apply_order()
        except Exception as e:
            logger.error(f"Failed to apply row order to list: {e}")
        if self._user_rows_changed is not None:
            self._user_rows_changed(table, rows, target)
