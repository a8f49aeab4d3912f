"""Analysis layer — run grouping, operator graph, and per-stage summaries.

Every function here is pure: it reads a materialized event sequence and
returns new objects without touching shared state.
"""

from streamtrace.analysis.filters import (
    filter_by_kind,
    filter_by_max_stage_id,
    filter_by_stage,
    filter_by_subscription,
)
from streamtrace.analysis.graph import Forest, StageNode, build_graph
from streamtrace.analysis.runs import RunGroups, RunKey, RunSelection, group_runs, select_run
from streamtrace.analysis.summary import StageSummary, StageWarning, compute_warnings, summarize

__all__ = [
    "Forest",
    "RunGroups",
    "RunKey",
    "RunSelection",
    "StageNode",
    "StageSummary",
    "StageWarning",
    "build_graph",
    "compute_warnings",
    "filter_by_kind",
    "filter_by_max_stage_id",
    "filter_by_stage",
    "filter_by_subscription",
    "group_runs",
    "select_run",
    "summarize",
]
