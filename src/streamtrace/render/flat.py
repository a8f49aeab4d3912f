"""Flat log view — every event, grouped per stage then per subscription.

Offsets are relative to the first event of the run being printed::

    Stage 1 (interval):
      Subscription 1:
        +0ms subscribe
        +100ms next       value = 0
        +200ms complete

"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from streamtrace.events.codec import jsonable
from streamtrace.events.model import MISSING, Failed, StageCreated, ValueEmitted, sort_events
from streamtrace.render._format import PLACEHOLDER

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streamtrace.analysis.runs import RunGroups
    from streamtrace.events.model import TraceEvent

KIND_WIDTH = 10


def _json(value: object) -> str:
    if value is MISSING:
        return PLACEHOLDER
    try:
        return json.dumps(jsonable(value), ensure_ascii=False)
    except (TypeError, ValueError):
        return PLACEHOLDER


def _event_line(event: TraceEvent, start: int, *, show_values: bool, show_timestamps: bool) -> str:
    head = f"+{event.timestamp - start}ms " if show_timestamps else ""
    base = f"    {head}{event.kind:<{KIND_WIDTH}}"
    if show_values and isinstance(event, ValueEmitted):
        return f"{base} value = {_json(event.value)}"
    if show_values and isinstance(event, Failed):
        return f"{base} error = {_json(event.error)}"
    return base.rstrip()


def render_flat(
    events: Iterable[TraceEvent],
    show_values: bool = True,
    show_timestamps: bool = True,
) -> list[str]:
    """Render one run as per-stage, per-subscription event listings.

    Stages and subscriptions appear in order of first occurrence.  Creation
    events contribute the stage label to the heading instead of a line.
    Returns ``["  (no events)"]`` when there is nothing to print.

    """
    ordered = sort_events(events)
    if not ordered:
        return ["  (no events)"]

    start = ordered[0].timestamp
    labels: dict[int, str] = {}
    by_stage: dict[int, dict[int, list[TraceEvent]]] = {}
    for event in ordered:
        subs = by_stage.setdefault(event.stage_id, {})
        if isinstance(event, StageCreated):
            labels.setdefault(event.stage_id, event.label)
            continue
        subs.setdefault(event.subscription_id, []).append(event)

    lines: list[str] = []
    for stage_id, subs in by_stage.items():
        label = labels.get(stage_id)
        lines.append(f"Stage {stage_id} ({label}):" if label else f"Stage {stage_id}:")
        for subscription_id, sub_events in subs.items():
            lines.append(f"  Subscription {subscription_id}:")
            lines.extend(
                _event_line(e, start, show_values=show_values, show_timestamps=show_timestamps)
                for e in sub_events
            )
    return lines


def render_runs_flat(
    groups: RunGroups,
    show_values: bool = True,
    show_timestamps: bool = True,
) -> list[str]:
    """Render every run with an ``=== <label> ===`` heading, legacy first."""
    if groups.total_events == 0:
        return ["No events found."]

    lines: list[str] = []
    for key, run_events in groups.iter_runs():
        if lines:
            lines.append("")
        lines.append(f"=== {key.label} ===")
        lines.extend(render_flat(run_events, show_values, show_timestamps))
    return lines
