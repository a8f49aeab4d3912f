"""Operator graph — reconstructs the stage forest from creation events.

Each ``StageCreated`` event becomes one node keyed by stage id; a node hangs
under ``parent_id`` when that stage was also created in the same event set.
Parents that were never seen (instrumented before the bus existed, or
filtered out) make the node a root instead of an error.

Noise collapsing is a view over the raw forest, not part of it: generic
("unknown", "Observable", ...) nodes with exactly one child are skipped by
``Forest.visible()`` so the operator chain reads as the user wrote it, while
``Forest.walk()`` and ``Forest.nodes`` keep every stage for other consumers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from streamtrace.config import DEFAULT_GENERIC_LABELS
from streamtrace.events.model import StageCreated

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from streamtrace.events.model import TraceEvent


@dataclass(slots=True, eq=False)
class StageNode:
    """One stage in the reconstructed forest.

    Attributes:
        id: Stage id.
        label: Stage label from its creation event.
        parent_id: Parent as recorded in the event (may be unresolvable).
        children: Resolved children, ascending by id.

    """

    id: int
    label: str
    parent_id: int | None = None
    children: list[StageNode] = field(default_factory=list)

    def is_generic(self, generic_labels: frozenset[str]) -> bool:
        return self.label in generic_labels


@dataclass(slots=True)
class Forest:
    """Stage forest with deterministic (ascending id) iteration.

    Attributes:
        roots: Nodes without a resolvable parent, ascending by id.
        nodes: All nodes by stage id.
        parents: Resolved child id -> parent id links.

    """

    roots: list[StageNode] = field(default_factory=list)
    nodes: dict[int, StageNode] = field(default_factory=dict)
    parents: dict[int, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, stage_id: object) -> bool:
        return stage_id in self.nodes

    def parent_of(self, stage_id: int) -> StageNode | None:
        """The resolved parent of a stage, or None for roots/unknown ids."""
        parent_id = self.parents.get(stage_id)
        return None if parent_id is None else self.nodes[parent_id]

    def depth_of(self, stage_id: int) -> int | None:
        """Distance from the stage's root (0 for roots), None if unknown."""
        if stage_id not in self.nodes:
            return None
        depth = 0
        parent = self.parent_of(stage_id)
        while parent is not None:
            depth += 1
            parent = self.parent_of(parent.id)
        return depth

    def walk(self) -> Iterator[tuple[StageNode, int]]:
        """Depth-first pre-order over the raw forest, yielding (node, depth)."""
        stack: list[tuple[StageNode, int]] = [(root, 0) for root in reversed(self.roots)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            stack.extend((child, depth + 1) for child in reversed(node.children))

    def visible(
        self,
        generic_labels: frozenset[str] = DEFAULT_GENERIC_LABELS,
    ) -> Iterator[tuple[StageNode, int]]:
        """Depth-first pre-order with noise nodes elided, yielding (node, depth).

        A generic node with exactly one child is replaced by that child at the
        same depth (repeatedly, so chains of wrappers disappear).  Generic
        nodes with zero or several children are kept to preserve branches.

        """
        stack: list[tuple[StageNode, int]] = [(root, 0) for root in reversed(self.roots)]
        while stack:
            node, depth = stack.pop()
            node = _promote(node, generic_labels)
            yield node, depth
            stack.extend((child, depth + 1) for child in reversed(node.children))


def _promote(node: StageNode, generic_labels: frozenset[str]) -> StageNode:
    while node.is_generic(generic_labels) and len(node.children) == 1:
        node = node.children[0]
    return node


def build_graph(events: Iterable[TraceEvent]) -> Forest:
    """Build the stage forest from the creation events in ``events``.

    Non-creation events are ignored.  Duplicate creation events for one id
    keep the first.  A parent link that would close a cycle is dropped and
    the node becomes a root, so the result is always a forest.

    """
    forest = Forest()
    for event in events:
        if isinstance(event, StageCreated) and event.stage_id not in forest.nodes:
            forest.nodes[event.stage_id] = StageNode(
                id=event.stage_id,
                label=event.label,
                parent_id=event.parent_id,
            )

    # Resolved parent per node, filled in ascending id order.
    resolved = forest.parents
    for stage_id in sorted(forest.nodes):
        node = forest.nodes[stage_id]
        parent_id = node.parent_id
        if parent_id is None or parent_id not in forest.nodes:
            forest.roots.append(node)
            continue
        if _reaches(resolved, parent_id, stage_id):
            forest.roots.append(node)
            continue
        resolved[stage_id] = parent_id

    for stage_id, parent_id in resolved.items():
        forest.nodes[parent_id].children.append(forest.nodes[stage_id])
    for node in forest.nodes.values():
        node.children.sort(key=lambda child: child.id)

    forest.roots.sort(key=lambda root: root.id)
    return forest


def _reaches(resolved: dict[int, int], start: int, target: int) -> bool:
    """True if following resolved parents from ``start`` arrives at ``target``."""
    current: int | None = start
    seen: set[int] = set()
    while current is not None and current not in seen:
        if current == target:
            return True
        seen.add(current)
        current = resolved.get(current)
    return False
