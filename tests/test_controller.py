"""Tests for the drag session state machine driven by synthetic events."""

from __future__ import annotations

import random

import pytest

from tablednd.autoscroll import SCROLL_INTERVAL_MS
from tablednd.config import DragConfig
from tablednd.controller import DragSessionController
from tablednd.events import SECONDARY_BUTTON, PointerActivate
from tablednd.geometry import GeometryProbe
from tablednd.model import Cell, Document, Element, Row, Section, Table
from tablednd.scheduler import ManualScheduler
from tablednd.session import SessionState

from tests.helpers import build_table, cell, down, move, order, up


class Recorder:
    """Collects hook invocations."""

    def __init__(self):
        self.started = []
        self.changed = []
        self.dropped = []

    def options(self, **extra):
        options = {
            "on_drag_start": lambda table, rows: self.started.append(_ids(rows)),
            "on_rows_changed": lambda table, rows, target: self.changed.append(
                (_ids(rows), target.element_id)
            ),
            "on_drop": lambda table, rows: self.dropped.append(_ids(rows)),
        }
        options.update(extra)
        return options


def _ids(rows):
    return [row.element_id for row in rows]


def _controller(table, recorder=None, scheduler=None, **extra):
    recorder = recorder or Recorder()
    return DragSessionController(
        table,
        recorder.options(**extra),
        scheduler=scheduler or ManualScheduler(),
    )


def test_drag_single_row_down_past_last_row():
    _document, table, rows = build_table()
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(down(25, cell(rows["B"])))
    assert controller.state is SessionState.ARMED

    controller.dispatch(move(30, cell(rows["B"])))
    assert controller.state is SessionState.DRAGGING
    assert recorder.started == [["B"]]

    controller.dispatch(move(52, cell(rows["C"])))
    assert order(table) == ["A", "C", "B", "D"]

    controller.dispatch(move(72, cell(rows["D"])))
    assert order(table) == ["A", "C", "D", "B"]
    assert len(recorder.changed) == 2

    controller.dispatch(up(72))
    assert controller.state is SessionState.IDLE
    assert recorder.dropped == [["B"]]
    assert controller.drag_set == ()
    assert controller.session is None


def test_drag_contiguous_rows_up_above_first_row():
    _document, table, rows = build_table(ids=["A", "B", "C"])
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(28, cell(rows["B"])))
    controller.dispatch(move(45, cell(rows["C"])))
    assert recorder.started == [["B", "C"]]

    controller.dispatch(move(30, cell(rows["B"])))
    controller.dispatch(up(30))

    assert order(table) == ["B", "C", "A"]
    assert recorder.changed == [(["B", "C"], "A")]
    assert recorder.dropped == [["B", "C"]]


def test_hovering_a_nodrop_row_leaves_order_unchanged():
    _document, table, rows = build_table(ids=["A", "B", "C"], flags={"B": ["nodrop"]})
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(down(5, cell(rows["A"])))
    controller.dispatch(move(9, cell(rows["A"])))
    controller.dispatch(move(29, cell(rows["B"])))
    controller.dispatch(move(33, cell(rows["B"])))

    assert order(table) == ["A", "B", "C"]
    assert recorder.changed == []


def test_jitter_inside_deadzone_keeps_session_armed():
    _document, table, rows = build_table()
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(down(25, cell(rows["B"])))
    for y in (27, 22, 28, 25):
        controller.dispatch(move(y, cell(rows["B"])))
        assert controller.state is SessionState.ARMED

    controller.dispatch(up(25))

    assert recorder.started == []
    assert recorder.dropped == []
    assert controller.state is SessionState.IDLE
    assert controller.drag_set == ()
    assert "tDnD_whileDrag" not in rows["B"].classes


def test_nodrag_row_never_arms_or_joins():
    _document, table, rows = build_table(flags={"A": ["nodrag"]})
    controller = _controller(table)

    controller.dispatch(down(5, cell(rows["A"])))
    assert controller.state is SessionState.IDLE

    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(26, cell(rows["A"])))
    controller.dispatch(move(27, cell(rows["B"])))
    controller.dispatch(move(40, cell(rows["C"])))

    assert controller.state is SessionState.DRAGGING
    assert rows["A"] not in controller.drag_set
    assert _ids(controller.drag_set) == ["B", "C"]


def test_session_aborts_when_nothing_draggable_under_pointer():
    _document, table, rows = build_table()
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(40, None))

    assert controller.state is SessionState.IDLE
    assert controller.session is None
    assert recorder.started == []

    controller.dispatch(up(40))
    assert recorder.dropped == []


def test_resolve_draggable_follows_element_structure():
    header_row = Row("h")
    header_row.append(Cell(header=True))
    span = Element("span")
    rows = [Row("A"), Row("B", ["nodrag"])]
    for row in rows:
        row.append(Cell())
    rows[0].cells[0].append(span)
    body = Section("body", rows=rows)
    table = Table("t", [Section("head", tag="thead", rows=[header_row]), body])
    Document().append(table)
    controller = _controller(table)

    assert controller.resolve_draggable(rows[0]).row is rows[0]
    assert controller.resolve_draggable(rows[0].cells[0]).container is body
    assert controller.resolve_draggable(span).row is rows[0]
    assert controller.resolve_draggable(rows[1].cells[0]) is None
    assert controller.resolve_draggable(header_row.cells[0]) is None
    assert controller.resolve_draggable(header_row) is None
    assert controller.resolve_draggable(body) is None
    assert controller.resolve_draggable(table) is None
    assert controller.resolve_draggable(None) is None


def test_rows_of_another_table_are_not_draggable():
    _document, table, _rows = build_table()
    _other_document, _other_table, other_rows = build_table(table_id="t2")
    controller = _controller(table)

    assert controller.resolve_draggable(cell(other_rows["A"])) is None


def _two_body_table():
    rows = {}
    bodies = []
    for name, ids in (("b1", "AB"), ("b2", "CD")):
        section_rows = []
        for row_id in ids:
            row = Row(row_id)
            row.append(Cell())
            rows[row_id] = row
            section_rows.append(row)
        bodies.append(Section(name, rows=section_rows))
    table = Table("t", bodies)
    Document().append(table)
    return table, bodies, rows


def test_toggle_selection_switches_container_and_reverts_feedback():
    table, bodies, rows = _two_body_table()
    controller = _controller(table)

    controller.dispatch(PointerActivate(page_y=5.0, target=cell(rows["A"])))
    assert _ids(controller.drag_set) == ["A"]
    assert "tDnD_whileDrag" in rows["A"].classes
    assert rows["A"].style["font-style"] == "italic"

    controller.dispatch(PointerActivate(page_y=45.0, target=cell(rows["C"])))
    assert _ids(controller.drag_set) == ["C"]
    assert controller.container is bodies[1]
    assert "tDnD_whileDrag" not in rows["A"].classes
    assert "font-style" not in rows["A"].style

    controller.dispatch(PointerActivate(page_y=45.0, target=cell(rows["C"])))
    assert controller.drag_set == ()
    assert controller.container is None


def test_move_onto_another_container_restarts_the_drag_set():
    table, bodies, rows = _two_body_table()
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(down(5, cell(rows["A"])))
    controller.dispatch(move(6, cell(rows["A"])))
    assert _ids(controller.drag_set) == ["A"]
    assert "tDnD_whileDrag" in rows["A"].classes

    controller.dispatch(move(45, cell(rows["C"])))

    assert controller.state is SessionState.DRAGGING
    assert _ids(controller.drag_set) == ["C"]
    assert controller.container is bodies[1]
    assert "tDnD_whileDrag" not in rows["A"].classes
    assert "font-style" not in rows["A"].style
    assert recorder.started == [["C"]]

    controller.dispatch(up(45))
    assert recorder.dropped == [["C"]]


def test_selection_excludes_rows_added_by_the_current_press():
    _document, table, rows = build_table()
    controller = _controller(table)

    controller.dispatch(PointerActivate(page_y=5.0, target=cell(rows["A"])))
    assert _ids(controller.selection) == ["A"]

    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(26, cell(rows["B"])))
    assert _ids(controller.drag_set) == ["A", "B"]
    assert _ids(controller.selection) == ["A"]

    controller.dispatch(up(26))
    assert _ids(controller.selection) == ["A"]

    controller.reset()
    assert controller.selection == ()


def test_toggled_selection_is_dragged_as_one_block():
    _document, table, rows = build_table()
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(PointerActivate(page_y=5.0, target=cell(rows["C"])))
    controller.dispatch(PointerActivate(page_y=45.0, target=cell(rows["A"])))

    controller.dispatch(down(45, cell(rows["C"])))
    controller.dispatch(move(47, cell(rows["C"])))
    controller.dispatch(move(52, cell(rows["C"])))
    assert recorder.started == [["A", "C"]]

    controller.dispatch(move(72, cell(rows["D"])))
    controller.dispatch(up(72))

    assert order(table) == ["B", "D", "A", "C"]
    assert recorder.dropped == [["A", "C"]]


def test_click_without_drag_keeps_toggle_selection():
    _document, table, rows = build_table()
    controller = _controller(table)

    controller.dispatch(PointerActivate(page_y=5.0, target=cell(rows["A"])))
    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(26, cell(rows["B"])))
    assert _ids(controller.drag_set) == ["A", "B"]

    controller.dispatch(up(26))

    assert _ids(controller.drag_set) == ["A"]
    assert "tDnD_whileDrag" not in rows["B"].classes


def test_pointer_down_during_live_session_ends_it_first():
    _document, table, rows = build_table()
    recorder = Recorder()
    controller = _controller(table, recorder)

    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(30, cell(rows["B"])))
    controller.dispatch(down(65, cell(rows["D"])))

    assert recorder.dropped == [["B"]]
    assert controller.state is SessionState.ARMED
    assert controller.session.anchor is rows["D"]


def test_button_and_modifier_constraints():
    _document, table, rows = build_table()
    controller = _controller(table, button_state="2 shift")

    controller.dispatch(down(25, cell(rows["B"])))
    assert controller.state is SessionState.IDLE

    controller.dispatch(down(25, cell(rows["B"]), button=SECONDARY_BUTTON))
    assert controller.state is SessionState.IDLE

    controller.dispatch(
        down(25, cell(rows["B"]), button=SECONDARY_BUTTON, modifiers=frozenset({"shift"}))
    )
    assert controller.state is SessionState.ARMED


def test_drag_handle_restricts_arming():
    rows = []
    for row_id in "AB":
        row = Row(row_id)
        row.append(Cell(), Cell(classes=["grip"]))
        rows.append(row)
    table = Table("t", [Section("b", rows=rows)])
    Document().append(table)
    controller = _controller(table, drag_handle="grip")

    controller.dispatch(down(5, rows[0].cells[0]))
    assert controller.state is SessionState.IDLE

    controller.dispatch(down(5, rows[0]))
    assert controller.state is SessionState.IDLE

    controller.dispatch(down(5, rows[0].cells[1]))
    assert controller.state is SessionState.ARMED
    assert controller.resolve_draggable(rows[1]).row is rows[1]


def test_failing_hook_is_logged_and_drag_continues(caplog):
    _document, table, rows = build_table()

    def explode(table, rows):
        raise RuntimeError("start failed")

    controller = _controller(table, on_drag_start=explode)

    with caplog.at_level("ERROR", logger="tablednd.controller"):
        controller.dispatch(down(25, cell(rows["B"])))
        controller.dispatch(move(30, cell(rows["B"])))
        controller.dispatch(move(52, cell(rows["C"])))

    assert "start failed" in caplog.text
    assert controller.state is SessionState.DRAGGING
    assert order(table) == ["A", "C", "B", "D"]


def test_drag_feedback_and_drop_style():
    _document, table, rows = build_table()
    controller = _controller(table, drop_style={"color": "green"})

    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(30, cell(rows["B"])))
    assert "tDnD_whileDrag" in rows["B"].classes
    assert rows["B"].style["color"] == "purple"
    assert table.style["cursor"] == "move"

    controller.dispatch(up(30))
    assert "tDnD_whileDrag" not in rows["B"].classes
    assert "font-style" not in rows["B"].style
    assert rows["B"].style["color"] == "green"
    assert table.style["cursor"] == "auto"


def test_auto_scroll_runs_through_dispatch_and_stops_on_release():
    document, table, rows = build_table(viewport_height=50.0)
    scheduler = ManualScheduler()
    controller = _controller(table, scheduler=scheduler)
    viewport = document.viewport

    controller.dispatch(down(25, cell(rows["B"])))
    controller.dispatch(move(48, cell(rows["B"])))
    assert viewport.scroll_y == 5.0
    assert controller.autoscroller.running

    scheduler.advance(SCROLL_INTERVAL_MS)
    assert viewport.scroll_y == 10.0

    controller.dispatch(up(48))
    assert not controller.autoscroller.running
    assert scheduler.pending == 0
    scheduler.advance(SCROLL_INTERVAL_MS * 10)
    assert viewport.scroll_y == 10.0


def test_controllers_do_not_share_state():
    _document, table, rows = build_table()
    _other_document, other_table, other_rows = build_table(table_id="t2")
    first = _controller(table)
    second = _controller(other_table)

    first.dispatch(down(25, cell(rows["B"])))
    first.dispatch(move(30, cell(rows["B"])))

    assert first.state is SessionState.DRAGGING
    assert second.state is SessionState.IDLE
    assert second.drag_set == ()


def test_serialize_uses_configured_pattern():
    _document, table, _rows = build_table(ids=["r-1", "r-2"])
    controller = DragSessionController(table, DragConfig.from_options({"serialize_pattern": r"r-\d+$"}))

    assert controller.serialize() == "t1[]=r-1&t1[]=r-2"


def test_table_without_document_needs_a_viewport():
    table = Table("loose", [Section("b")])

    with pytest.raises(ValueError):
        DragSessionController(table)


@pytest.mark.parametrize("seed", range(6))
def test_random_gestures_preserve_invariants(seed):
    rng = random.Random(seed)
    ids = [f"r{i}" for i in range(8)]
    _document, table, rows = build_table(ids=ids, flags={"r2": ["nodrag"], "r5": ["nodrop"]})
    controller = _controller(table)
    probe = GeometryProbe()

    def row_at(y):
        for row in table.rows:
            top = probe.position(row).y
            if top <= y < top + row.height:
                return cell(row)
        return None

    for _ in range(200):
        y = rng.uniform(0.0, 170.0)
        kind = rng.choice(["down", "move", "move", "move", "up", "activate"])
        if kind == "down":
            controller.dispatch(down(y, row_at(y)))
        elif kind == "move":
            controller.dispatch(move(y, row_at(y)))
        elif kind == "up":
            controller.dispatch(up(y))
        else:
            controller.dispatch(PointerActivate(page_y=y, target=row_at(y)))

        assert rows["r2"] not in controller.drag_set
        assert sorted(order(table)) == sorted(ids)
        if controller.state is SessionState.DRAGGING:
            assert controller.drag_set
