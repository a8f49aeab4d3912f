"""Marble diagrams — one fixed-width character line per stage.

Example (scale 10, three stages sharing a time base)::

    source #1  -1-2-3-4-5-|
    map #2     -a-b-c-d-e-|
    filter #3  ---b-c-d-e-|

Markers: ``-`` no activity, first character of the value for ``next``,
``|`` complete, ``X`` error.  Several events that land in one slot overwrite
each other in causal order (last write wins), which is an accepted loss of
detail at low resolutions.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from streamtrace.events.model import Completed, Failed, StageCreated, ValueEmitted, sort_events
from streamtrace.render._format import first_char

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from streamtrace.events.model import TraceEvent

IDLE = "-"
COMPLETE = "|"
ERROR = "X"


def _slot_count(duration: int, scale: float) -> int:
    # Slots cover [first, last] inclusive, so the last event always gets
    # its own slot instead of being clamped onto an earlier one.
    return math.floor(duration * scale / 1000) + 1


def render_marble(
    events: Iterable[TraceEvent],
    stage_id: int,
    scale: float = 50,
    *,
    span: tuple[int, int] | None = None,
) -> str:
    """Render one stage's timeline as a marble string.

    Args:
        events: Events of one run (other stages are ignored).
        stage_id: Stage to draw.
        scale: Resolution in characters per second.
        span: Optional ``(start, end)`` time base shared with other stages.
            Defaults to the stage's own first and last event.

    Returns:
        The marble string, or ``""`` if the stage has no events.

    """
    if scale <= 0:
        msg = f"scale must be positive, got {scale!r}"
        raise ValueError(msg)

    stage_events = sort_events(e for e in events if e.stage_id == stage_id)
    if not stage_events:
        return ""

    if span is None:
        start = min(e.timestamp for e in stage_events)
        end = max(e.timestamp for e in stage_events)
    else:
        start, end = span
    duration = max(1, end - start)

    length = _slot_count(duration, scale)
    chars = [IDLE] * length

    for event in stage_events:
        offset = max(0, event.timestamp - start)
        pos = min(length - 1, math.floor(offset * scale / 1000))
        if isinstance(event, ValueEmitted):
            chars[pos] = first_char(event.value)
        elif isinstance(event, Completed):
            chars[pos] = COMPLETE
        elif isinstance(event, Failed):
            chars[pos] = ERROR

    return "".join(chars)


def render_marbles(events: Sequence[TraceEvent], scale: float = 50) -> list[str]:
    """Render every stage of a run on a shared time base, one line per stage.

    Lines are ordered by stage id and prefixed with ``label #id``.  Returns
    ``["(no events)"]`` for an empty run.

    """
    if not events:
        return ["(no events)"]

    labels: dict[int, str] = {}
    for event in events:
        if isinstance(event, StageCreated):
            labels.setdefault(event.stage_id, event.label)

    span = (min(e.timestamp for e in events), max(e.timestamp for e in events))
    stage_ids = sorted({e.stage_id for e in events})
    names = {sid: f"{labels.get(sid, 'stage')} #{sid}" for sid in stage_ids}
    width = max(len(name) for name in names.values())

    return [
        f"{names[sid]:<{width}}  {render_marble(events, sid, scale, span=span)}"
        for sid in stage_ids
    ]
