"""Visual feedback for rows that are being dragged."""

from __future__ import annotations

from typing import Protocol

from .config import DragConfig
from .model import Element, Row


class Feedback(Protocol):
    def show_drag(self, row: Row) -> None:
        ...

    def hide_drag(self, row: Row) -> None:
        ...

    def show_dropped(self, row: Row) -> None:
        ...

    def set_cursor(self, element: Element, cursor: str) -> None:
        ...


class StyleFeedback:
    """Apply the configured drag/drop styles and drag class to model rows."""

    def __init__(self, config: DragConfig):
        self.config = config

    def show_drag(self, row: Row) -> None:
        if self.config.drop_style:
            for key in self.config.drop_style:
                row.style.pop(key, None)
        if self.config.drag_style:
            row.style.update(self.config.drag_style)
        if self.config.drag_class:
            row.classes.update(self.config.drag_class.split())

    def hide_drag(self, row: Row) -> None:
        if self.config.drag_style:
            for key in self.config.drag_style:
                row.style.pop(key, None)
        if self.config.drag_class:
            row.classes.difference_update(self.config.drag_class.split())

    def show_dropped(self, row: Row) -> None:
        if self.config.drop_style:
            row.style.update(self.config.drop_style)

    def set_cursor(self, element: Element, cursor: str) -> None:
        element.style["cursor"] = cursor
