"""Headless element tree used as the drag-and-drop rendering surface.

The controller never talks to a toolkit directly. Tables, sections, rows and
cells are mirrored into this small retained tree which carries just enough
layout information (a vertical flow layout) for hit-testing and auto-scroll.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional


STACKING_TAGS = {"table", "tbody", "thead", "tfoot", "div", "body"}
SCROLLABLE_OVERFLOW = {"auto", "scroll"}


@dataclass(frozen=True)
class RowFlags:
    """Structural drag/drop flags of a row, resolved once per evaluation."""

    nodrag: bool = False
    nodrop: bool = False
    nodropbefore: bool = False
    nodropafter: bool = False

    @classmethod
    def of(cls, row: Optional["Element"]) -> "RowFlags":
        if row is None:
            return _NO_FLAGS
        return cls(
            nodrag=row.has_class("nodrag"),
            nodrop=row.has_class("nodrop"),
            nodropbefore=row.has_class("nodropbefore"),
            nodropafter=row.has_class("nodropafter"),
        )


_NO_FLAGS = RowFlags()


class Element:
    """A node of the element tree with a vertical flow layout."""

    owner_document: Optional["Document"] = None

    def __init__(
        self,
        tag: str,
        element_id: str = "",
        classes: Iterable[str] = (),
        height: float = 0.0,
        top: float = 0.0,
        left: float = 0.0,
        visible: bool = True,
    ):
        self.tag = tag.lower()
        self.element_id = element_id
        self.classes = set(classes)
        self.height = float(height)
        self.top = float(top)
        self.left = float(left)
        self.visible = visible
        self.style: Dict[str, str] = {}
        self.parent: Optional[Element] = None
        self.children: List[Element] = []

    def __repr__(self) -> str:
        ident = f"#{self.element_id}" if self.element_id else ""
        return f"<{self.tag}{ident}>"

    # -- tree -------------------------------------------------------------

    def append(self, *children: "Element") -> "Element":
        for child in children:
            child.remove()
            child.parent = self
            self.children.append(child)
        return self

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def insert_before(self, node: "Element", reference: "Element") -> None:
        """Move ``node`` so that it immediately precedes ``reference``."""
        if node is reference:
            return
        node.remove()
        siblings = reference.parent.children
        siblings.insert(siblings.index(reference), node)
        node.parent = reference.parent

    def insert_after(self, node: "Element", reference: "Element") -> None:
        """Move ``node`` so that it immediately follows ``reference``."""
        if node is reference:
            return
        node.remove()
        siblings = reference.parent.children
        siblings.insert(siblings.index(reference) + 1, node)
        node.parent = reference.parent

    @property
    def first_child(self) -> Optional["Element"]:
        return self.children[0] if self.children else None

    @property
    def next_sibling(self) -> Optional["Element"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = siblings.index(self)
        return siblings[index + 1] if index + 1 < len(siblings) else None

    @property
    def previous_sibling(self) -> Optional["Element"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = siblings.index(self)
        return siblings[index - 1] if index > 0 else None

    def iter_ancestors(self) -> Iterator["Element"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator["Element"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def closest(self, tag: str) -> Optional["Element"]:
        """Return this element or its nearest ancestor with ``tag``."""
        if self.tag == tag:
            return self
        for ancestor in self.iter_ancestors():
            if ancestor.tag == tag:
                return ancestor
        return None

    def find_all(self, tag: str, css_class: Optional[str] = None) -> List["Element"]:
        return [
            node
            for node in self.iter_descendants()
            if node.tag == tag and (css_class is None or node.has_class(css_class))
        ]

    def has_class(self, name: str) -> bool:
        return name in self.classes

    @property
    def root(self) -> "Element":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def document_index(self) -> List[int]:
        """Sibling indexes from the root down to this element (document order key)."""
        path = []
        node = self
        while node.parent is not None:
            path.append(node.parent.children.index(node))
            node = node.parent
        path.reverse()
        return path

    # -- layout -----------------------------------------------------------

    @property
    def stacks_children(self) -> bool:
        return self.tag in STACKING_TAGS

    @property
    def offset_parent(self) -> Optional["Element"]:
        return self.parent

    @property
    def offset_height(self) -> float:
        if not self.visible:
            return 0.0
        if self.children and self.stacks_children:
            return sum(child.flow_height for child in self.children)
        return self.height

    @property
    def flow_height(self) -> float:
        """Height this element occupies in its parent's flow."""
        if not self.visible:
            return 0.0
        height = self.offset_height
        if height == 0 and self.first_child is not None:
            return self.first_child.offset_height
        return height

    @property
    def offset_top(self) -> float:
        if self.parent is None:
            return self.top
        if not self.parent.stacks_children:
            return self.top
        offset = self.top
        for sibling in self.parent.children:
            if sibling is self:
                break
            offset += sibling.flow_height
        return offset

    @property
    def offset_left(self) -> float:
        return self.left


class Cell(Element):
    def __init__(self, element_id: str = "", classes: Iterable[str] = (), header: bool = False, **kwargs):
        super().__init__("th" if header else "td", element_id, classes, **kwargs)

    @property
    def offset_height(self) -> float:
        if not self.visible:
            return 0.0
        if self.height == 0 and self.parent is not None:
            return self.parent.height
        return self.height


class Row(Element):
    """A table row; its ``flags`` come from the ``nodrag``/``nodrop*`` classes."""

    def __init__(self, element_id: str = "", classes: Iterable[str] = (), height: float = 20.0, **kwargs):
        super().__init__("tr", element_id, classes, height=height, **kwargs)

    @property
    def flags(self) -> RowFlags:
        return RowFlags.of(self)

    @property
    def cells(self) -> List[Element]:
        return [child for child in self.children if child.tag in ("td", "th")]

    @property
    def offset_height(self) -> float:
        if not self.visible:
            return 0.0
        return self.height


class Section(Element):
    """A ``tbody``/``thead``/``tfoot``; a ``tbody`` is a drag container."""

    def __init__(self, element_id: str = "", tag: str = "tbody", rows: Iterable[Row] = (), **kwargs):
        super().__init__(tag, element_id, **kwargs)
        self.append(*rows)

    @property
    def is_container(self) -> bool:
        return self.tag == "tbody"

    @property
    def rows(self) -> List[Row]:
        return [child for child in self.children if isinstance(child, Row)]

    @property
    def visible_rows(self) -> List[Row]:
        return [row for row in self.rows if row.visible]

    def move_before(self, row: Row, reference: Row) -> None:
        self.insert_before(row, reference)

    def move_after(self, row: Row, reference: Row) -> None:
        self.insert_after(row, reference)


class Table(Element):
    def __init__(self, element_id: str = "", sections: Iterable[Section] = (), **kwargs):
        super().__init__("table", element_id, **kwargs)
        self.append(*sections)

    @property
    def sections(self) -> List[Section]:
        return [child for child in self.children if isinstance(child, Section)]

    @property
    def bodies(self) -> List[Section]:
        return [section for section in self.sections if section.is_container]

    @property
    def rows(self) -> List[Row]:
        rows: List[Row] = []
        for section in self.sections:
            rows.extend(section.rows)
        return rows


class ScrollArea(Element):
    """A block with its own vertical scroll offset."""

    def __init__(self, element_id: str = "", height: float = 0.0, overflow: str = "auto", **kwargs):
        super().__init__("div", element_id, height=height, **kwargs)
        self.overflow = overflow
        self.scroll_top = 0.0

    @property
    def scrollable(self) -> bool:
        return self.overflow in SCROLLABLE_OVERFLOW

    @property
    def client_height(self) -> float:
        return self.height

    @property
    def scroll_height(self) -> float:
        return max(self.client_height, sum(child.flow_height for child in self.children))

    @property
    def offset_height(self) -> float:
        if not self.visible:
            return 0.0
        if not self.scrollable:
            return max(self.height, self.scroll_height)
        return self.height


class Viewport:
    """The visible window onto a document."""

    def __init__(self, height: float, document_height: float = 0.0, scroll_y: float = 0.0, scroll_x: float = 0.0):
        self.height = float(height)
        self.scroll_y = float(scroll_y)
        self.scroll_x = float(scroll_x)
        self.content: Optional[Element] = None
        self._document_height = float(document_height)

    @property
    def document_height(self) -> float:
        content_height = self.content.offset_height if self.content is not None else 0.0
        return max(self._document_height, content_height)

    @document_height.setter
    def document_height(self, value: float) -> None:
        self._document_height = float(value)

    @property
    def max_scroll_y(self) -> float:
        return max(0.0, self.document_height - self.height)

    def scroll_by(self, amount: float) -> float:
        """Scroll vertically, clamped to the document; returns the new offset."""
        self.scroll_y = max(0.0, min(self.max_scroll_y, self.scroll_y + amount))
        return self.scroll_y


class Document:
    """Root of an element tree plus the viewport looking at it."""

    def __init__(self, viewport_height: float = 600.0, viewport: Optional[Viewport] = None):
        self.body = Element("body")
        self.body.owner_document = self
        self.viewport = viewport or Viewport(viewport_height)
        self.viewport.content = self.body

    def append(self, *children: Element) -> "Document":
        self.body.append(*children)
        return self

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        if not element_id:
            return None
        for node in self.body.iter_descendants():
            if node.element_id == element_id:
                return node
        return None


def document_of(element: Element) -> Optional[Document]:
    return getattr(element.root, "owner_document", None)


def document_order(rows: Iterable[Element]) -> List[Element]:
    """Return ``rows`` deduplicated and sorted into document order."""
    unique: List[Element] = []
    for row in rows:
        if not any(row is seen for seen in unique):
            unique.append(row)
    return sorted(unique, key=lambda row: row.document_index())
