"""Live reordering of dragged rows around a target row."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .model import Row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReorderResult:
    """Outcome of one reorder step.

    ``target`` is the target reference after the walk over the drag set and is
    what the rows-changed hook receives. ``displaced_fixed`` lists ``nodrop``
    rows outside the drag set whose slot changed; they are not put back.
    """

    target: Row
    moved: bool
    displaced_fixed: List[Row] = field(default_factory=list)


def fixed_rows(rows: Sequence[Row], drag_set: Sequence[Row]) -> List[Tuple[int, Row]]:
    """Return ``(index, row)`` for every ``nodrop`` row not being dragged."""
    dragged = {id(row) for row in drag_set}
    return [
        (index, row)
        for index, row in enumerate(rows)
        if row.flags.nodrop and id(row) not in dragged
    ]


class ReorderEngine:
    def reorder(self, drag_set: Sequence[Row], target: Row, upward: bool) -> ReorderResult:
        """Move ``drag_set`` (in document order) next to ``target``.

        Upward, each dragged row is placed before the target; a dragged row
        that is itself the target hands the reference on to its next sibling.
        Downward, each dragged row is placed after the target and becomes the
        new reference, which keeps the block contiguous and in order; a
        dragged row that is the target hands the reference to its previous
        sibling.
        """

        container = target.parent
        before = list(container.children)
        pinned = fixed_rows(container.rows, drag_set)

        reference = target
        for row in drag_set:
            if upward:
                if row is not reference:
                    container.move_before(row, reference)
                else:
                    following = row.next_sibling
                    if following is not None:
                        reference = following
            else:
                if row is not reference:
                    container.move_after(row, reference)
                    reference = row
                else:
                    previous = row.previous_sibling
                    if previous is not None:
                        reference = previous

        after = container.children
        moved = len(before) != len(after) or any(a is not b for a, b in zip(before, after))

        rows_now = container.rows
        displaced = [row for index, row in pinned if index >= len(rows_now) or rows_now[index] is not row]
        if displaced:
            logger.debug("Fixed rows shifted by reorder: %s", displaced)

        return ReorderResult(target=reference, moved=moved, displaced_fixed=displaced)
