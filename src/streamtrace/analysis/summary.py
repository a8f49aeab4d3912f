"""Per-stage summaries — event counts, subscription cardinality, duration.

``summarize()`` folds one run's events into a ``StageSummary`` per stage.
Warnings are derived from the aggregate counts alone (no ordering state):

- values emitted but never completed or errored -> possible leak
- any error -> error count
- more than one subscription -> hint to share the upstream computation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from streamtrace.events.model import KIND_PRIORITY, StageCreated

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streamtrace._types import StageId
    from streamtrace.events.model import TraceEvent


@dataclass(frozen=True, slots=True)
class StageWarning:
    """An advisory finding about one stage.

    Attributes:
        code: Machine-readable warning type.
        level: ``"warning"`` for likely problems, ``"info"`` for hints.
        message: Human-readable text.

    """

    code: Literal["unterminated", "errors", "multiple-subscriptions"]
    level: Literal["warning", "info"]
    message: str

    def __str__(self) -> str:
        marker = "⚠" if self.level == "warning" else "ℹ"
        return f"{marker} {self.message}"


@dataclass(slots=True)
class StageSummary:
    """Aggregate statistics for one stage within one run.

    Attributes:
        stage_id: The stage.
        label: Label from the stage's creation event, if present.
        total_events: Number of events of any kind.
        counts: Event count per wire kind (every kind present, zero default).
        subscription_ids: Distinct subscription ids seen.
        first_timestamp: Earliest event timestamp.
        last_timestamp: Latest event timestamp.

    """

    stage_id: int
    label: str | None = None
    total_events: int = 0
    counts: dict[str, int] = field(default_factory=lambda: dict.fromkeys(KIND_PRIORITY, 0))
    subscription_ids: set[int] = field(default_factory=set)
    first_timestamp: int | None = None
    last_timestamp: int | None = None

    @property
    def subscription_count(self) -> int:
        return len(self.subscription_ids)

    @property
    def next_count(self) -> int:
        return self.counts["next"]

    @property
    def error_count(self) -> int:
        return self.counts["error"]

    @property
    def complete_count(self) -> int:
        return self.counts["complete"]

    @property
    def unsubscribe_count(self) -> int:
        return self.counts["unsubscribe"]

    @property
    def duration(self) -> int:
        """Milliseconds between first and last event, never negative."""
        if self.first_timestamp is None or self.last_timestamp is None:
            return 0
        return max(0, self.last_timestamp - self.first_timestamp)

    @property
    def warnings(self) -> tuple[StageWarning, ...]:
        return compute_warnings(self)

    def add(self, event: TraceEvent) -> None:
        """Fold one event into the aggregate."""
        self.total_events += 1
        self.counts[event.kind] += 1
        if isinstance(event, StageCreated):
            if self.label is None:
                self.label = event.label
        else:
            self.subscription_ids.add(event.subscription_id)

        ts = event.timestamp
        if self.first_timestamp is None or ts < self.first_timestamp:
            self.first_timestamp = ts
        if self.last_timestamp is None or ts > self.last_timestamp:
            self.last_timestamp = ts


def compute_warnings(summary: StageSummary) -> tuple[StageWarning, ...]:
    """Derive advisory warnings from a stage's aggregate counts."""
    warnings: list[StageWarning] = []

    has_next = summary.next_count > 0
    has_complete = summary.complete_count > 0
    has_error = summary.error_count > 0

    if has_next and not has_complete and not has_error:
        warnings.append(
            StageWarning(
                code="unterminated",
                level="warning",
                message=(
                    "emits values but never completes or errors "
                    "(possible leak / intentionally infinite stream)"
                ),
            )
        )

    if has_error:
        warnings.append(
            StageWarning(
                code="errors",
                level="warning",
                message=f"emitted errors (errorCount = {summary.error_count})",
            )
        )

    if summary.subscription_count > 1:
        warnings.append(
            StageWarning(
                code="multiple-subscriptions",
                level="info",
                message=(
                    f"multiple subscriptions ({summary.subscription_count}) - "
                    "consider sharing the upstream if it is expensive"
                ),
            )
        )

    return tuple(warnings)


def summarize(events: Iterable[TraceEvent]) -> dict[StageId, StageSummary]:
    """Aggregate events per stage, keyed and ordered by ascending stage id."""
    by_stage: dict[int, StageSummary] = {}
    for event in events:
        summary = by_stage.get(event.stage_id)
        if summary is None:
            summary = StageSummary(stage_id=event.stage_id)
            by_stage[event.stage_id] = summary
        summary.add(event)
    return {stage_id: by_stage[stage_id] for stage_id in sorted(by_stage)}
