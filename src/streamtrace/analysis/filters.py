"""Event-subset helpers for narrowing a log before rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streamtrace._types import EventKind
    from streamtrace.events.model import TraceEvent


def filter_by_max_stage_id(events: Iterable[TraceEvent], max_id: int) -> list[TraceEvent]:
    """Keep events of stages with id <= ``max_id`` (drops late, noisy stages)."""
    return [e for e in events if e.stage_id <= max_id]


def filter_by_stage(events: Iterable[TraceEvent], stage_id: int) -> list[TraceEvent]:
    return [e for e in events if e.stage_id == stage_id]


def filter_by_subscription(events: Iterable[TraceEvent], subscription_id: int) -> list[TraceEvent]:
    """Keep the events of one subscription (creation events never match)."""
    return [e for e in events if e.subscription_id == subscription_id]


def filter_by_kind(events: Iterable[TraceEvent], *kinds: EventKind) -> list[TraceEvent]:
    wanted = frozenset(kinds)
    return [e for e in events if e.kind in wanted]
