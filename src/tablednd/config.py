"""Drag-and-drop options for a table.

Options are merged over the defaults and validated once, when a controller
is built. Hooks are plain callables; everything else may also be loaded
from a JSON file.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Pattern

from .events import MODIFIERS, PointerEvent

logger = logging.getLogger(__name__)


DEFAULT_DRAG_STYLE = {"color": "purple", "font-style": "italic"}
DEFAULT_DRAG_CLASS = "tDnD_whileDrag"
DEFAULT_SERIALIZE_PATTERN = r"[^\-]*$"

HOOK_OPTIONS = ("on_drop", "on_drag_start", "on_rows_changed", "on_allow_drop")
JSON_OPTIONS = (
    "drag_style",
    "drop_style",
    "drag_class",
    "button_state",
    "serialize_pattern",
    "drag_handle",
    "container_id",
)


@dataclass(frozen=True)
class ButtonState:
    """Accepted pointer buttons plus the modifiers that must be held."""

    buttons: FrozenSet[int] = frozenset()
    modifiers: FrozenSet[str] = frozenset()

    @classmethod
    def parse(cls, text: str) -> "ButtonState":
        """Parse strings such as ``"0"``, ``"02 shift"`` or ``"ctrl,alt"``.

        Digits name acceptable buttons (0 primary, 1 middle, 2 secondary);
        words name required modifiers. No digits means any button.
        """

        buttons = set()
        modifiers = set()
        for token in re.split(r"[\s,+]+", (text or "").strip().lower()):
            if not token:
                continue
            if token.isdigit():
                for digit in token:
                    if digit not in "012":
                        raise ValueError(f"Unsupported button index '{digit}' in '{text}'")
                    buttons.add(int(digit))
            elif token in MODIFIERS:
                modifiers.add(token)
            else:
                raise ValueError(f"Unsupported button state token '{token}'")
        return cls(frozenset(buttons), frozenset(modifiers))

    def accepts(self, event: PointerEvent) -> bool:
        if self.buttons and event.button not in self.buttons:
            return False
        return self.modifiers <= set(event.modifiers)


@dataclass(frozen=True)
class DragConfig:
    drag_style: Optional[Dict[str, str]] = field(default_factory=lambda: dict(DEFAULT_DRAG_STYLE))
    drop_style: Optional[Dict[str, str]] = None
    drag_class: Optional[str] = DEFAULT_DRAG_CLASS
    on_drop: Optional[Callable] = None
    on_drag_start: Optional[Callable] = None
    on_rows_changed: Optional[Callable] = None
    on_allow_drop: Optional[Callable] = None
    button_state: ButtonState = field(default_factory=ButtonState)
    serialize_pattern: Optional[Pattern] = field(
        default_factory=lambda: re.compile(DEFAULT_SERIALIZE_PATTERN)
    )
    drag_handle: Optional[str] = None
    container_id: Optional[str] = None

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None, base: Optional["DragConfig"] = None) -> "DragConfig":
        """Merge ``options`` over ``base`` (or the defaults) and validate them."""

        base = base or cls()
        if not options:
            return base

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"Unknown drag option(s): {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in options.items():
            if key in HOOK_OPTIONS:
                if value is not None and not callable(value):
                    raise ValueError(f"Option '{key}' must be callable")
                values[key] = value
            elif key == "button_state":
                values[key] = value if isinstance(value, ButtonState) else ButtonState.parse(value or "")
            elif key == "serialize_pattern":
                values[key] = _compile_pattern(value)
            elif key in ("drag_style", "drop_style"):
                if value is not None and not isinstance(value, Mapping):
                    raise ValueError(f"Option '{key}' must be a mapping of style properties")
                values[key] = dict(value) if value is not None else None
            else:
                if value is not None and not isinstance(value, str):
                    raise ValueError(f"Option '{key}' must be a string")
                values[key] = value or None

        return replace(base, **values)


def _compile_pattern(value) -> Optional[Pattern]:
    if value is None or isinstance(value, re.Pattern):
        return value
    try:
        return re.compile(value)
    except re.error as e:
        raise ValueError(f"Invalid serialize pattern '{value}': {e}") from e


def load_options(path: str, base: Optional[DragConfig] = None) -> DragConfig:
    """Load the JSON-serialisable options stored at ``path``.

    A missing file yields ``base`` unchanged; keys that cannot come from JSON
    (the hooks) are ignored with a warning.
    """

    base = base or DragConfig()
    if not os.path.exists(path):
        logger.debug("No drag options file at %s", path)
        return base

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Drag options in {path} must be a JSON object")

    options = {}
    for key, value in data.items():
        if key in JSON_OPTIONS:
            options[key] = value
        else:
            logger.warning("Ignoring option '%s' from %s", key, path)
    return DragConfig.from_options(options, base=base)
