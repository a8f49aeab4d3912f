"""Tick-quantized timeline — a compact, grouped text view of one run.

Timestamps are bucketed into fixed-width ticks counted from the first event.
Ticks past ``max_ticks`` all collapse into the last tick, which bounds the
output for long-running or runaway streams.

Inside a tick, events are grouped per (stage, subscription).  A complete and
an unsubscribe of the same subscription in the same tick merge into one
"complete & unsubscribed" line, since immediate teardown is the common case.
Lines are ordered by stage id, subscription id, then lifecycle order::

    0.000 : stage1 created (interval)
          : stage1 subscribed (sub1)
          : stage1 next 0 (sub1)
    0.100 : stage1 next 1 (sub1)
          : stage1 complete & unsubscribed (sub1)

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, TypeAlias

from streamtrace.events.model import (
    Completed,
    Failed,
    StageCreated,
    Subscribed,
    Unsubscribed,
    ValueEmitted,
    sort_events,
)
from streamtrace.render._format import short_value

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streamtrace.events.model import TraceEvent

DEFAULT_TICK_MS = 100
DEFAULT_MAX_TICKS = 7

EMPTY_LINE = "(no events)"

DocKind: TypeAlias = Literal[
    "created",
    "subscribed",
    "next",
    "error",
    "complete",
    "unsubscribed",
    "complete&unsubscribed",
]

# Logical order of lines for one subscription within a tick.
_DOC_ORDER: dict[str, int] = {
    "created": 0,
    "subscribed": 1,
    "next": 2,
    "error": 3,
    "complete": 4,
    "unsubscribed": 5,
    "complete&unsubscribed": 6,
}

_KIND_TO_DOC: dict[str, DocKind] = {
    StageCreated.kind: "created",
    Subscribed.kind: "subscribed",
    ValueEmitted.kind: "next",
    Failed.kind: "error",
    Completed.kind: "complete",
    Unsubscribed.kind: "unsubscribed",
}


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    """One line of the timeline: a kind and the event it describes."""

    kind: DocKind
    event: TraceEvent

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (
            self.event.stage_id,
            self.event.subscription_id or 0,
            _DOC_ORDER[self.kind],
        )

    def text(self) -> str:
        event = self.event
        stage = f"stage{event.stage_id}"
        sub = f" (sub{event.subscription_id})" if event.subscription_id is not None else ""

        match self.kind:
            case "created":
                label = event.label if isinstance(event, StageCreated) else ""
                return f"{stage} created ({label})" if label else f"{stage} created"
            case "subscribed":
                return f"{stage} subscribed{sub}"
            case "next":
                value = event.value if isinstance(event, ValueEmitted) else None
                return f"{stage} next {short_value(value)}{sub}"
            case "error":
                error = event.error if isinstance(event, Failed) else None
                return f"{stage} error {short_value(error)}{sub}"
            case "complete":
                return f"{stage} complete{sub}"
            case "unsubscribed":
                return f"{stage} unsubscribed{sub}"
            case "complete&unsubscribed":
                return f"{stage} complete & unsubscribed{sub}"


@dataclass(frozen=True, slots=True)
class Tick:
    """All timeline entries falling into one tick."""

    index: int
    tick_ms: int
    entries: tuple[TimelineEntry, ...]

    @property
    def label(self) -> str:
        """Tick start in seconds with millisecond precision (``"0.300"``)."""
        return f"{self.index * self.tick_ms / 1000:.3f}"


def quantize(
    events: Iterable[TraceEvent],
    tick_ms: int = DEFAULT_TICK_MS,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> list[Tick]:
    """Bucket events into ticks and build each tick's ordered entries."""
    if tick_ms <= 0:
        msg = f"tick_ms must be positive, got {tick_ms!r}"
        raise ValueError(msg)

    ordered = sort_events(events)
    if not ordered:
        return []

    start = ordered[0].timestamp
    buckets: dict[int, list[TraceEvent]] = {}
    for event in ordered:
        index = min((event.timestamp - start) // tick_ms, max(0, max_ticks))
        buckets.setdefault(index, []).append(event)

    return [
        Tick(index=index, tick_ms=tick_ms, entries=_entries_for(buckets[index]))
        for index in sorted(buckets)
    ]


def _entries_for(bucket: list[TraceEvent]) -> tuple[TimelineEntry, ...]:
    groups: dict[tuple[int, int], list[TraceEvent]] = {}
    for event in bucket:
        key = (event.stage_id, event.subscription_id or 0)
        groups.setdefault(key, []).append(event)

    entries: list[TimelineEntry] = []
    for group in groups.values():
        complete = next((e for e in group if isinstance(e, Completed)), None)
        unsubscribe = next((e for e in group if isinstance(e, Unsubscribed)), None)

        for event in group:
            if isinstance(event, (Completed, Unsubscribed)):
                continue
            entries.append(TimelineEntry(kind=_KIND_TO_DOC[event.kind], event=event))

        if complete is not None and unsubscribe is not None:
            entries.append(TimelineEntry(kind="complete&unsubscribed", event=complete))
        elif complete is not None:
            entries.append(TimelineEntry(kind="complete", event=complete))
        elif unsubscribe is not None:
            entries.append(TimelineEntry(kind="unsubscribed", event=unsubscribe))

    # Stable: entries of one kind keep their causal order.
    entries.sort(key=lambda entry: entry.sort_key)
    return tuple(entries)


def render_timeline(
    events: Iterable[TraceEvent],
    tick_ms: int = DEFAULT_TICK_MS,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> list[str]:
    """Render a run as tick-grouped text lines.

    The first line of each tick carries the tick time; continuation lines
    are aligned under it.  Returns ``["(no events)"]`` for an empty run.

    """
    ticks = quantize(events, tick_ms, max_ticks)
    if not ticks:
        return [EMPTY_LINE]

    lines: list[str] = []
    for tick in ticks:
        label = tick.label
        pad = " " * len(label)
        for i, entry in enumerate(tick.entries):
            prefix = label if i == 0 else pad
            lines.append(f"{prefix} : {entry.text()}")
    return lines


def render_timeline_mermaid(
    events: Iterable[TraceEvent],
    title: str = "streamtrace timeline",
    tick_ms: int = DEFAULT_TICK_MS,
    max_ticks: int = DEFAULT_MAX_TICKS,
) -> str:
    """Render the timeline as a fenced Mermaid ``timeline`` block."""
    ticks = quantize(events, tick_ms, max_ticks)
    if not ticks:
        return "```mermaid\ntimeline\n  title (no events)\n```"

    lines = ["```mermaid", "timeline", f"  title {title}", ""]
    for tick in ticks:
        label = tick.label
        pad = " " * len(label)
        for i, entry in enumerate(tick.entries):
            prefix = label if i == 0 else pad
            lines.append(f"  {prefix} : {entry.text()}")
        lines.append("")
    lines.append("```")
    return "\n".join(lines)
