"""Payload formatting shared by the renderers."""

from __future__ import annotations

import json

from streamtrace.events.codec import jsonable
from streamtrace.events.model import MISSING

# Shown wherever a payload is absent or cannot be turned into text.
PLACEHOLDER = "?"

MAX_VALUE_WIDTH = 40


def stringify(value: object) -> str:
    """Text form of a payload: strings as-is, everything else as JSON."""
    if value is MISSING:
        return PLACEHOLDER
    if isinstance(value, str):
        return value
    try:
        return json.dumps(jsonable(value), ensure_ascii=False)
    except (TypeError, ValueError):
        return PLACEHOLDER


def short_value(value: object, width: int = MAX_VALUE_WIDTH) -> str:
    """JSON form of a payload, truncated to ``width`` characters."""
    if value is MISSING:
        return PLACEHOLDER
    try:
        text = json.dumps(jsonable(value), ensure_ascii=False)
    except (TypeError, ValueError):
        text = PLACEHOLDER
    if len(text) > width:
        return text[: width - 3] + "..."
    return text


def first_char(value: object) -> str:
    """Single-character marker for a payload."""
    text = stringify(value)
    return text[0] if text else PLACEHOLDER
