"""Text summary report — per-stage statistics and warnings for each run."""

from __future__ import annotations

from typing import TYPE_CHECKING

from streamtrace.analysis.summary import summarize

if TYPE_CHECKING:
    from collections.abc import Iterable

    from streamtrace.analysis.runs import RunGroups
    from streamtrace.analysis.summary import StageSummary
    from streamtrace.events.model import TraceEvent

NO_EVENTS = "No events found."


def _stat(name: str, value: object) -> str:
    return f"  {name + ':':<18}{value}"


def _stage_block(summary: StageSummary) -> list[str]:
    heading = f"Stage {summary.stage_id}"
    if summary.label:
        heading += f" ({summary.label})"
    lines = [
        f"{heading}:",
        _stat("subscriptions", summary.subscription_count),
        _stat("events", summary.total_events),
        _stat("next", summary.next_count),
        _stat("complete", summary.complete_count),
        _stat("error", summary.error_count),
        _stat("unsubscribe", summary.unsubscribe_count),
        _stat("duration", f"{summary.duration}ms"),
    ]
    warnings = summary.warnings
    if not warnings:
        lines.append(_stat("warnings", "(none)"))
    else:
        lines.append("  warnings:")
        lines.extend(f"    - {warning}" for warning in warnings)
    return lines


def render_report(label: str, events: Iterable[TraceEvent]) -> list[str]:
    """Summary of one run under an ``=== <label> ===`` heading."""
    lines = [f"=== {label} ==="]
    summaries = summarize(events)
    if not summaries:
        lines.append("  (no events)")
        return lines
    for summary in summaries.values():
        lines.extend(_stage_block(summary))
    return lines


def render_runs_report(groups: RunGroups) -> list[str]:
    """Summary of every run in display order (legacy first)."""
    if groups.total_events == 0:
        return [NO_EVENTS]
    lines: list[str] = []
    for key, run_events in groups.iter_runs():
        lines.extend(render_report(key.label, run_events))
    return lines
