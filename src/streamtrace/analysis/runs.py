"""Run grouping — partitions a flat event log by execution run.

Events carrying a ``run_id`` go to that run's bucket; events without one go
to the legacy bucket.  One linear pass, insertion order preserved inside
each bucket.

Display order: legacy first (when non-empty), then runs by ascending id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from streamtrace._types import RunId
    from streamtrace.events.model import TraceEvent

LEGACY_LABEL = "Legacy events (no runId)"
EMPTY_LABEL = "Empty log"


@dataclass(frozen=True, slots=True)
class RunKey:
    """Identifies one bucket of a ``RunGroups`` partition.

    Attributes:
        run_id: The run id, or None for the legacy bucket.

    """

    run_id: RunId

    @property
    def is_legacy(self) -> bool:
        return self.run_id is None

    @property
    def label(self) -> str:
        """Display heading for the bucket."""
        if self.run_id is None:
            return LEGACY_LABEL
        return f"Run {self.run_id}"


@dataclass(slots=True)
class RunGroups:
    """Disjoint, exhaustive partition of an event sequence by run.

    Attributes:
        legacy: Events without a run id, in input order.
        runs: Run id -> events of that run, in input order.

    """

    legacy: list[TraceEvent] = field(default_factory=list)
    runs: dict[int, list[TraceEvent]] = field(default_factory=dict)

    def __len__(self) -> int:
        """Number of non-empty buckets."""
        return len(self.runs) + (1 if self.legacy else 0)

    @property
    def run_ids(self) -> list[int]:
        """Run ids in ascending order."""
        return sorted(self.runs)

    @property
    def total_events(self) -> int:
        return len(self.legacy) + sum(len(v) for v in self.runs.values())

    def iter_runs(self) -> Iterator[tuple[RunKey, list[TraceEvent]]]:
        """Yield buckets in display order: legacy first, then ascending run id."""
        if self.legacy:
            yield RunKey(None), self.legacy
        for run_id in self.run_ids:
            yield RunKey(run_id), self.runs[run_id]


def group_runs(events: Iterable[TraceEvent]) -> RunGroups:
    """Partition events into per-run buckets plus the legacy bucket."""
    groups = RunGroups()
    for event in events:
        if event.run_id is None:
            groups.legacy.append(event)
        else:
            groups.runs.setdefault(event.run_id, []).append(event)
    return groups


@dataclass(frozen=True, slots=True)
class RunSelection:
    """One run picked out of a ``RunGroups`` partition for display."""

    label: str
    events: tuple[TraceEvent, ...]
    run_id: int | None = None


def select_run(groups: RunGroups, run_id: int | None = None) -> RunSelection:
    """Pick the run to visualize.

    An explicit ``run_id`` wins when present in the log; otherwise the latest
    run, then the legacy bucket, then an empty selection.

    """
    if run_id is not None and run_id in groups.runs:
        return RunSelection(f"Run {run_id}", tuple(groups.runs[run_id]), run_id)

    run_ids = groups.run_ids
    if run_ids:
        latest = run_ids[-1]
        return RunSelection(f"Run {latest}", tuple(groups.runs[latest]), latest)

    if groups.legacy:
        return RunSelection(LEGACY_LABEL, tuple(groups.legacy))

    return RunSelection(EMPTY_LABEL, ())
