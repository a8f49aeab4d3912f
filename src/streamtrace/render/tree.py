"""Operator tree — indented text view of the stage forest.

Noise nodes are collapsed by default, so a pipeline built through several
anonymous wrappers still reads as one line per user-visible operator::

    interval #1
      map #3
        filter #4

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from streamtrace.config import DEFAULT_GENERIC_LABELS

if TYPE_CHECKING:
    from collections.abc import Mapping

    from streamtrace.analysis.graph import Forest, StageNode
    from streamtrace.analysis.summary import StageSummary

INDENT = "  "
EMPTY_LINE = "(no stages)"


def _line(node: StageNode, depth: int, summaries: Mapping[int, StageSummary] | None) -> str:
    text = f"{INDENT * depth}{node.label} #{node.id}"
    if summaries is None:
        return text
    summary = summaries.get(node.id)
    if summary is None:
        return text
    stats = f"subs={summary.subscription_count} next={summary.next_count}"
    if summary.error_count:
        stats += f" error={summary.error_count}"
    return f"{text}  [{stats}]"


def render_tree(
    forest: Forest,
    generic_labels: frozenset[str] = DEFAULT_GENERIC_LABELS,
    *,
    collapse: bool = True,
    summaries: Mapping[int, StageSummary] | None = None,
) -> list[str]:
    """Render the forest one node per line, two spaces per depth level.

    Args:
        forest: Output of ``build_graph()``.
        generic_labels: Labels treated as noise when collapsing.
        collapse: Skip generic single-child nodes (``Forest.visible()``).
            When False every stage is printed (``Forest.walk()``).
        summaries: Optional per-stage summaries; adds a short stats suffix.

    Returns:
        Lines in depth-first order, or ``["(no stages)"]`` for an empty forest.

    """
    if not forest.roots:
        return [EMPTY_LINE]
    nodes = forest.visible(generic_labels) if collapse else forest.walk()
    return [_line(node, depth, summaries) for node, depth in nodes]
