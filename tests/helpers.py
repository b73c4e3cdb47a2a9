"""Shared builders for the drag-and-drop tests."""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

from tablednd.events import PointerDown, PointerMove, PointerUp
from tablednd.model import Cell, Document, Row, Section, Table


ROW_HEIGHT = 20.0


def build_table(
    ids: Iterable[str] = ("A", "B", "C", "D"),
    flags: Optional[Dict[str, Iterable[str]]] = None,
    table_id: str = "t1",
    viewport_height: float = 600.0,
) -> Tuple[Document, Table, Dict[str, Row]]:
    """Build a one-body table of 20px rows starting at document y=0."""

    flags = flags or {}
    rows = {}
    for row_id in ids:
        row = Row(row_id, flags.get(row_id, ()), height=ROW_HEIGHT)
        row.append(Cell())
        rows[row_id] = row
    table = Table(table_id, [Section(f"{table_id}-body", rows=rows.values())])
    document = Document(viewport_height=viewport_height).append(table)
    return document, table, rows


def order(table: Table):
    return [row.element_id for row in table.rows]


def cell(row: Row):
    return row.cells[0]


def down(y, target=None, **kwargs):
    return PointerDown(page_x=5.0, page_y=y, target=target, **kwargs)


def move(y, target=None, **kwargs):
    return PointerMove(page_x=5.0, page_y=y, target=target, **kwargs)


def up(y, target=None, **kwargs):
    return PointerUp(page_x=5.0, page_y=y, target=target, **kwargs)
