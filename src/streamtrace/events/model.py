"""Lifecycle event model for instrumented reactive pipelines.

Defines one record type per lifecycle transition of a stage or subscription:

- ``StageCreated``: a stage was seen for the first time
- ``Subscribed``: a subscription to a stage started
- ``ValueEmitted``: a subscription delivered a value
- ``Failed``: a subscription terminated with an error
- ``Completed``: a subscription terminated normally
- ``Unsubscribed``: a subscription was torn down by its consumer

All events are flat, frozen dataclasses with:
- ``stage_id``: Identity of the stage the event belongs to
- ``timestamp``: Wall-clock milliseconds (same unit across a run)
- ``run_id``: Optional execution run the event belongs to

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import ClassVar, Final, Literal, TypeAlias


class _Missing:
    """Marker for a payload field that was absent from the source record."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


# ---------------------------------------------------------------------------
# Stage events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StageCreated:
    """A pipeline stage was observed for the first time.

    Attributes:
        stage_id: Identity assigned to the stage.
        label: Human name (operator name or explicit tag); ``"unknown"`` when
            the provenance function could not resolve one.
        parent_id: Stage that produced this stage (upstream), if known.
        timestamp: Wall-clock milliseconds.
        run_id: Execution run, or None for legacy events.

    """

    kind: ClassVar[Literal["observable-create"]] = "observable-create"

    stage_id: int
    label: str
    parent_id: int | None
    timestamp: int
    run_id: int | None = None

    @property
    def subscription_id(self) -> None:
        """Creation events never belong to a subscription."""
        return None


# ---------------------------------------------------------------------------
# Subscription events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Subscribed:
    """A consumer subscribed to a stage."""

    kind: ClassVar[Literal["subscribe"]] = "subscribe"

    stage_id: int
    subscription_id: int
    timestamp: int
    run_id: int | None = None


@dataclass(frozen=True, slots=True)
class ValueEmitted:
    """A subscription delivered a value.

    ``value`` is ``MISSING`` when the source record had no payload.
    """

    kind: ClassVar[Literal["next"]] = "next"

    stage_id: int
    subscription_id: int
    timestamp: int
    value: object = MISSING
    run_id: int | None = None


@dataclass(frozen=True, slots=True)
class Failed:
    """A subscription terminated with an error.

    ``error`` is ``MISSING`` when the source record had no payload.
    """

    kind: ClassVar[Literal["error"]] = "error"

    stage_id: int
    subscription_id: int
    timestamp: int
    error: object = MISSING
    run_id: int | None = None


@dataclass(frozen=True, slots=True)
class Completed:
    """A subscription terminated normally."""

    kind: ClassVar[Literal["complete"]] = "complete"

    stage_id: int
    subscription_id: int
    timestamp: int
    run_id: int | None = None


@dataclass(frozen=True, slots=True)
class Unsubscribed:
    """A subscription was torn down by its consumer."""

    kind: ClassVar[Literal["unsubscribe"]] = "unsubscribe"

    stage_id: int
    subscription_id: int
    timestamp: int
    run_id: int | None = None


# ---------------------------------------------------------------------------
# Union type and ordering
# ---------------------------------------------------------------------------

TraceEvent: TypeAlias = (
    StageCreated
    | Subscribed
    | ValueEmitted
    | Failed
    | Completed
    | Unsubscribed
)

SubscriptionEvent: TypeAlias = Subscribed | ValueEmitted | Failed | Completed | Unsubscribed

EVENT_TYPES: Final[dict[str, type]] = {
    StageCreated.kind: StageCreated,
    Subscribed.kind: Subscribed,
    ValueEmitted.kind: ValueEmitted,
    Failed.kind: Failed,
    Completed.kind: Completed,
    Unsubscribed.kind: Unsubscribed,
}

# Logical lifecycle order, used to break timestamp ties.  Never alphabetical.
KIND_PRIORITY: Final[dict[str, int]] = {
    "observable-create": 0,
    "subscribe": 1,
    "next": 2,
    "error": 3,
    "complete": 4,
    "unsubscribe": 5,
}


def event_sort_key(event: TraceEvent) -> tuple[int, int, int, int]:
    """Total ordering key: timestamp, stage id, subscription id, kind priority."""
    return (
        event.timestamp,
        event.stage_id,
        event.subscription_id or 0,
        KIND_PRIORITY[event.kind],
    )


def sort_events(events: Iterable[TraceEvent]) -> list[TraceEvent]:
    """Return events in causal display order (stable for full ties)."""
    return sorted(events, key=event_sort_key)


def now_ms() -> int:
    """Return the current wall-clock time in milliseconds."""
    return time.time_ns() // 1_000_000
