"""Undo/redo log over graph snapshots.

Each committed snapshot gets a human-readable label derived by diffing it
against the previous one. The label policy is an ordered list of
(predicate, label) rules; the first rule that matches wins.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import EDIT_LABEL_PREVIEW, MAX_UNDO_HISTORY
from .models import GraphEdge, GraphNode, HistorySnapshot, check_unique_ids

logger = logging.getLogger(__name__)

INITIAL_LABEL = "Initial state"
CURRENT_LABEL = "Current state"
FALLBACK_LABEL = "Action"


@dataclass
class SnapshotDiff:
    """Differences between two consecutive graph states."""
    before_nodes: list[GraphNode]
    after_nodes: list[GraphNode]
    before_edges: list[GraphEdge]
    after_edges: list[GraphEdge]
    added_ids: list[str] = field(default_factory=list)
    removed_ids: list[str] = field(default_factory=list)
    new_edges: list[GraphEdge] = field(default_factory=list)
    # (before, after) pairs for ids present in both states, in `after` order
    common: list[tuple[GraphNode, GraphNode]] = field(default_factory=list)

    @classmethod
    def between(cls, before: HistorySnapshot, nodes: list[GraphNode],
                edges: list[GraphEdge]) -> SnapshotDiff:
        before_by_id = {n.id: n for n in before.nodes}
        after_ids = {n.id for n in nodes}
        before_edge_ids = {e.id for e in before.edges}
        return cls(
            before_nodes=before.nodes,
            after_nodes=nodes,
            before_edges=before.edges,
            after_edges=edges,
            added_ids=[n.id for n in nodes if n.id not in before_by_id],
            removed_ids=[n.id for n in before.nodes if n.id not in after_ids],
            new_edges=[e for e in edges if e.id not in before_edge_ids],
            common=[(before_by_id[n.id], n) for n in nodes if n.id in before_by_id],
        )

    @property
    def node_delta(self) -> int:
        return len(self.after_nodes) - len(self.before_nodes)

    @property
    def edge_delta(self) -> int:
        return len(self.after_edges) - len(self.before_edges)

    def has_child_edge_to_new_node(self) -> bool:
        added = set(self.added_ids)
        return any(e.is_hierarchical and e.target in added for e in self.new_edges)

    def first_changed(self, attr: str) -> Optional[GraphNode]:
        for old, new in self.common:
            if getattr(old, attr) != getattr(new, attr):
                return new
        return None


def _edit_label(diff: SnapshotDiff) -> str:
    text = diff.first_changed("label").label
    if len(text) > EDIT_LABEL_PREVIEW:
        return f'Edited text: "{text[:EDIT_LABEL_PREVIEW]}..."'
    return f'Edited text: "{text}"'


def _replaced_label(diff: SnapshotDiff) -> str:
    count = len(diff.removed_ids)
    return "Replaced node" if count == 1 else f"Replaced {count} nodes"


LabelRule = tuple[Callable[[SnapshotDiff], bool], Callable[[SnapshotDiff], str]]

LABEL_RULES: list[LabelRule] = [
    (lambda d: d.node_delta == 1 and d.has_child_edge_to_new_node(),
     lambda d: "Added child node"),
    (lambda d: d.node_delta == 1, lambda d: "Added sibling node"),
    (lambda d: d.node_delta > 1, lambda d: f"Added {d.node_delta} nodes"),
    (lambda d: d.node_delta == -1, lambda d: "Deleted node"),
    (lambda d: d.node_delta < -1, lambda d: f"Deleted {-d.node_delta} nodes"),
    (lambda d: d.edge_delta == 1, lambda d: "Added cross-link"),
    (lambda d: d.edge_delta > 1, lambda d: f"Added {d.edge_delta} links"),
    (lambda d: d.edge_delta < 0, lambda d: "Removed link"),
    (lambda d: bool(d.removed_ids), _replaced_label),
    (lambda d: d.first_changed("label") is not None, _edit_label),
    (lambda d: d.first_changed("metadata") is not None, lambda d: "Updated metadata"),
    (lambda d: d.first_changed("icon") is not None, lambda d: "Changed icon"),
    (lambda d: d.first_changed("cloud") is not None, lambda d: "Changed cloud"),
]


def describe_change(previous: Optional[HistorySnapshot], nodes: list[GraphNode],
                    edges: list[GraphEdge], rules: Optional[list[LabelRule]] = None) -> str:
    """Label the change from `previous` to the given graph state."""
    if previous is None:
        return INITIAL_LABEL
    diff = SnapshotDiff.between(previous, nodes, edges)
    for predicate, label in (LABEL_RULES if rules is None else rules):
        if predicate(diff):
            return label(diff)
    return FALLBACK_LABEL


class UndoRedoHistory:
    """Linear undo/redo log.

    `past` holds committed snapshots oldest first and is capped at
    `max_history`; `future` holds undone snapshots, the next redo first.
    """

    def __init__(self, max_history: int = MAX_UNDO_HISTORY,
                 clock: Callable[[], float] = time.time):
        self.max_history = max_history
        self._clock = clock
        self._past: list[HistorySnapshot] = []
        self._future: list[HistorySnapshot] = []
        self._current: Optional[HistorySnapshot] = None

    @property
    def past(self) -> list[HistorySnapshot]:
        return list(self._past)

    @property
    def future(self) -> list[HistorySnapshot]:
        return list(self._future)

    @property
    def can_undo(self) -> bool:
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    def _now(self) -> int:
        return int(self._clock() * 1000)

    def add_to_history(self, nodes: list[GraphNode], edges: list[GraphEdge]) -> HistorySnapshot:
        """Commit a graph state and clear the redo stack.

        Raises:
            DuplicateNodeError: If two nodes share an id; nothing is committed.
        """
        check_unique_ids(nodes)
        previous = self._past[-1] if self._past else None
        snapshot = HistorySnapshot(
            nodes=copy.deepcopy(nodes),
            edges=copy.deepcopy(edges),
            label=describe_change(previous, nodes, edges),
            timestamp=self._now(),
        )
        self._past.append(snapshot)
        if len(self._past) > self.max_history:
            evicted = len(self._past) - self.max_history
            del self._past[:evicted]
            logger.debug("Evicted %d oldest history entr%s", evicted, "y" if evicted == 1 else "ies")
        if self._future:
            logger.debug("Discarding %d redo entries", len(self._future))
        self._future.clear()
        self._current = snapshot
        return snapshot

    def undo(self) -> Optional[HistorySnapshot]:
        """Move the newest past entry to the front of the future."""
        if not self._past:
            return None
        snapshot = self._past.pop()
        self._future.insert(0, snapshot)
        self._current = snapshot
        return snapshot

    def redo(self) -> Optional[HistorySnapshot]:
        """Move the front of the future back onto the past."""
        if not self._future:
            return None
        snapshot = self._future.pop(0)
        self._past.append(snapshot)
        self._current = snapshot
        return snapshot

    def jump_to_history(self, index: int, from_past: bool) -> Optional[HistorySnapshot]:
        """Jump to an arbitrary entry, moving every crossed entry across.

        Jumping to `past[index]` is the same as undoing down to it; jumping
        to `future[index]` is the same as redoing up to it.
        """
        if from_past:
            if not 0 <= index < len(self._past):
                return None
            moved = self._past[index:]
            del self._past[index:]
            self._future[:0] = moved
            target = moved[0]
        else:
            if not 0 <= index < len(self._future):
                return None
            moved = self._future[:index + 1]
            del self._future[:index + 1]
            self._past.extend(moved)
            target = moved[-1]
        self._current = target
        return target

    def get_full_history(self) -> list[HistorySnapshot]:
        """Past entries, a synthesized current entry, then future entries."""
        entries = [copy.copy(s) for s in self._past]
        current = self._current
        entries.append(HistorySnapshot(
            nodes=current.nodes if current else [],
            edges=current.edges if current else [],
            label=CURRENT_LABEL,
            timestamp=self._now(),
            is_current=True,
        ))
        entries.extend(copy.copy(s) for s in self._future)
        return entries

    def clear_history(self) -> None:
        self._past.clear()
        self._future.clear()
        self._current = None
