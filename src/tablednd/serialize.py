"""Serialise row order as ``tableId[]=rowId&...`` query strings."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Pattern, Union

from .config import DEFAULT_SERIALIZE_PATTERN
from .model import Section, Table


def trim_row_id(row_id: str, pattern: Optional[Pattern]) -> str:
    if pattern is None:
        return row_id
    match = pattern.search(row_id)
    return match.group(0) if match else row_id


def serialize(
    element: Union[Table, Section],
    pattern: Union[Pattern, str, None] = DEFAULT_SERIALIZE_PATTERN,
) -> str:
    """Return the row order of ``element`` as ``id[]=rowId`` pairs joined by ``&``.

    Rows without an id contribute ``id[]=""``.
    """

    if isinstance(pattern, str):
        pattern = re.compile(pattern)

    parts = []
    for row in element.rows:
        if row.element_id:
            parts.append(f"{element.element_id}[]={trim_row_id(row.element_id, pattern)}")
        else:
            parts.append(f'{element.element_id}[]=""')
    return "&".join(parts)


def serialize_many(
    elements: Iterable[Union[Table, Section]],
    pattern: Union[Pattern, str, None] = DEFAULT_SERIALIZE_PATTERN,
) -> str:
    return "&".join(part for part in (serialize(element, pattern) for element in elements) if part)
