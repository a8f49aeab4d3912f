"""Referential consistency checks over an event sequence.

Partial and filtered logs are an expected input shape, so every finding here
is advisory.  Renderers never depend on these checks passing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from streamtrace.events.model import StageCreated, Subscribed

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streamtrace.events.model import TraceEvent


@dataclass(frozen=True, slots=True)
class ConsistencyIssue:
    """One referential inconsistency found in an event sequence.

    Attributes:
        code: Machine-readable issue type.
        stage_id: Stage the offending event belongs to.
        subscription_id: Subscription involved, if any.
        index: Position of the offending event in the input sequence.
        message: Human-readable description.

    """

    code: Literal["orphan-subscription", "unknown-stage", "negative-duration"]
    stage_id: int
    subscription_id: int | None
    index: int
    message: str


def check_consistency(events: Iterable[TraceEvent]) -> tuple[ConsistencyIssue, ...]:
    """Report events that reference ids their log never introduced.

    Record order (not timestamp order) decides whether a ``Subscribed``
    record "precedes" the events of its subscription.  Unknown-stage issues
    are only reported when the sequence contains creation records at all.

    """
    materialized = list(events)
    has_creations = any(isinstance(e, StageCreated) for e in materialized)

    created: set[int] = set()
    subscribed: set[int] = set()
    last_seen: dict[int, int] = {}
    reported_stages: set[int] = set()
    issues: list[ConsistencyIssue] = []

    for index, event in enumerate(materialized):
        if isinstance(event, StageCreated):
            created.add(event.stage_id)
            continue

        if (
            has_creations
            and event.stage_id not in created
            and event.stage_id not in reported_stages
        ):
            reported_stages.add(event.stage_id)
            issues.append(
                ConsistencyIssue(
                    code="unknown-stage",
                    stage_id=event.stage_id,
                    subscription_id=event.subscription_id,
                    index=index,
                    message=f"stage {event.stage_id} has events but no creation record",
                )
            )

        sid = event.subscription_id
        if isinstance(event, Subscribed):
            subscribed.add(sid)
        elif sid not in subscribed:
            issues.append(
                ConsistencyIssue(
                    code="orphan-subscription",
                    stage_id=event.stage_id,
                    subscription_id=sid,
                    index=index,
                    message=(
                        f"{event.kind} for subscription {sid} appears before "
                        "its subscribe record"
                    ),
                )
            )

        previous = last_seen.get(sid)
        if previous is not None and event.timestamp < previous:
            issues.append(
                ConsistencyIssue(
                    code="negative-duration",
                    stage_id=event.stage_id,
                    subscription_id=sid,
                    index=index,
                    message=(
                        f"{event.kind} for subscription {sid} is {previous - event.timestamp}ms "
                        "earlier than the record before it"
                    ),
                )
            )
        last_seen[sid] = event.timestamp if previous is None else max(previous, event.timestamp)

    return tuple(issues)
