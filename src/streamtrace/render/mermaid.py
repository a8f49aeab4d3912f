"""Mermaid flowchart of one run's operator graph.

One node per stage carrying its statistics, and one ``-->`` edge per
resolved parent link (upstream to downstream)::

    flowchart TD
      %% streamtrace
      %% Run 3
      stage1["interval #1\\nsubs: 1\\nnext: 3 ..."]
      stage1 --> stage2

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from streamtrace.analysis.graph import build_graph
from streamtrace.analysis.summary import summarize

if TYPE_CHECKING:
    from collections.abc import Sequence

    from streamtrace.analysis.summary import StageSummary
    from streamtrace.events.model import TraceEvent


def _escape(text: str) -> str:
    return text.replace('"', "#quot;")


def _node(summary: StageSummary) -> str:
    name = summary.label or "stage"
    parts = [
        f"{name} #{summary.stage_id}",
        f"subs: {summary.subscription_count}",
        f"next: {summary.next_count}",
        f"complete: {summary.complete_count}",
        f"error: {summary.error_count}",
        f"unsubscribe: {summary.unsubscribe_count}",
        f"dur: {summary.duration}ms",
    ]
    text = "\\n".join(_escape(part) for part in parts)
    return f'  stage{summary.stage_id}["{text}"]'


def render_flowchart(events: Sequence[TraceEvent], label: str = "") -> list[str]:
    """Render a ``flowchart TD`` for one run.

    Returns an empty list when ``events`` is empty; callers decide how to
    report that.

    """
    summaries = summarize(events)
    if not summaries:
        return []

    lines = ["flowchart TD", "  %% streamtrace"]
    if label:
        lines.append(f"  %% {label}")
    lines.extend(_node(summary) for summary in summaries.values())

    forest = build_graph(events)
    for child_id in sorted(forest.parents):
        parent_id = forest.parents[child_id]
        if parent_id in summaries and child_id in summaries:
            lines.append(f"  stage{parent_id} --> stage{child_id}")
    return lines
