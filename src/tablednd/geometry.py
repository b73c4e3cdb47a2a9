"""Element geometry and scroll bounds in document space."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .model import Element, ScrollArea, Viewport, document_of
from .pointer import Point

logger = logging.getLogger(__name__)


ScrollTarget = Union[ScrollArea, Viewport]


@dataclass(frozen=True)
class ScrollBounds:
    """Current and maximum vertical scroll offset of a scroll target."""

    offset: float
    maximum: float

    @property
    def at_top(self) -> bool:
        return self.offset <= 0

    @property
    def at_bottom(self) -> bool:
        return self.offset >= self.maximum


class GeometryProbe:
    """Measure elements and scroll targets."""

    def position(self, element: Element) -> Point:
        """Return the document-space top-left corner of ``element``.

        Offsets are summed along the offset-parent chain. Scroll areas crossed
        on the way shift their content up by their scroll offset. An element
        reporting zero height is measured through its first child, the way a
        row whose own box is unmeasurable is located through its first cell.
        """

        node: Optional[Element] = element
        if element.offset_height == 0 and element.first_child is not None:
            node = element.first_child

        left = 0.0
        top = 0.0
        while node is not None:
            left += node.offset_left
            top += node.offset_top
            parent = node.offset_parent
            if isinstance(parent, ScrollArea):
                top -= parent.scroll_top
            node = parent
        return Point(left, top)

    def half_height(self, element: Element) -> float:
        """Half of the element's height, used as the drop-zone limiter."""
        height = element.offset_height
        if height <= 0 and element.first_child is not None:
            height = element.first_child.offset_height
        return height / 2.0

    def scroll_bounds(self, target: ScrollTarget) -> ScrollBounds:
        if isinstance(target, Viewport):
            return ScrollBounds(target.scroll_y, target.max_scroll_y)
        maximum = max(0.0, target.scroll_height - target.client_height)
        return ScrollBounds(target.scroll_top, maximum)

    def edges(self, target: ScrollTarget) -> Tuple[float, float]:
        """Return the (top, bottom) document-space limits of the visible area."""
        if isinstance(target, Viewport):
            return target.scroll_y, target.scroll_y + target.height
        top = self.position(target).y
        return top, top + target.offset_height


def resolve_scroll_target(element: Element, container_id: Optional[str] = None) -> Optional[ScrollArea]:
    """Find the scroll area auto-scroll should drive for ``element``.

    A configured ``container_id`` wins when it names an existing scrollable
    area; otherwise the nearest scrollable ancestor is used. ``None`` means
    the viewport itself should be scrolled.
    """

    if container_id:
        document = document_of(element)
        candidate = document.get_element_by_id(container_id) if document is not None else None
        if isinstance(candidate, ScrollArea) and candidate.scrollable:
            return candidate
        logger.debug(
            "Scroll container '%s' is missing or not scrollable; falling back", container_id
        )

    for ancestor in element.iter_ancestors():
        if isinstance(ancestor, ScrollArea) and ancestor.scrollable:
            return ancestor
    return None
