"""Mutation Pipeline - The single writer of graph state.

Every structural or field-level change goes through update_graph():

    mutator → forest sanitation → visibility → (layout) →
    collapse stamping → handle normalization → commit → history push

The mutator either returns a complete next graph (full commit) or None
(full no-op); there is no partial commit.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

from mindgraph.graph.GraphNode import GraphNode
from mindgraph.graph.history import History, Snapshot, Viewport
from mindgraph.graph.layout import LayoutOptions, layout_nodes
from mindgraph.graph.relations import Edge
from mindgraph.graph.store import GraphStore
from mindgraph.graph.visibility import apply_collapse_state, resolve_visibility

logger = logging.getLogger(__name__)

GraphState = Tuple[list[GraphNode], list[Edge]]
Mutator = Callable[[list[GraphNode], list[Edge]], Optional[GraphState]]
CommitListener = Callable[[GraphStore], None]


def enforce_forest(nodes: Sequence[GraphNode], edges: Sequence[Edge]) -> GraphState:
    """Drop whatever would break the forest invariant.

    Keeps the first node per ID, then walks edges in order and drops
    dangling edges, self-loops, second parents and cycle-closing edges.

    Args:
        nodes: Candidate nodes.
        edges: Candidate edges.

    Returns:
        Tuple of (nodes, edges) forming a forest.
    """
    unique: list[GraphNode] = []
    seen: set[str] = set()
    for node in nodes:
        if node.id in seen:
            logger.warning("Dropping duplicate node id %s", node.id)
            continue
        seen.add(node.id)
        unique.append(node)

    parent: dict[str, str] = {}
    kept: list[Edge] = []
    for edge in edges:
        if edge.source not in seen or edge.target not in seen:
            logger.debug("Pruning dangling edge %s", edge.id)
            continue
        if edge.source == edge.target or edge.target in parent:
            logger.debug("Dropping edge %s: target already has a parent", edge.id)
            continue
        ancestor: str | None = edge.source
        while ancestor is not None and ancestor != edge.target:
            ancestor = parent.get(ancestor)
        if ancestor == edge.target:
            logger.debug("Dropping edge %s: it would close a cycle", edge.id)
            continue
        parent[edge.target] = edge.source
        kept.append(edge)
    return unique, kept


class MutationPipeline:
    """Applies mutators to a GraphStore and records history.

    Attributes:
        store: The canonical graph state.
        history: Undo/redo snapshots.
        layout_options: Spacing used when a mutation relayouts.
        viewport: Current camera state, stored with each snapshot.
    """

    def __init__(
        self,
        store: GraphStore,
        history: History | None = None,
        layout_options: LayoutOptions | None = None,
        viewport: Viewport | None = None,
    ) -> None:
        self.store = store
        self.history = history if history is not None else History()
        self.layout_options = layout_options or LayoutOptions()
        self.viewport = viewport or Viewport()
        self._restoring = False
        self._listeners: list[CommitListener] = []

    @property
    def is_restoring(self) -> bool:
        """True while a snapshot is being replayed."""
        return self._restoring

    def subscribe(self, listener: CommitListener) -> None:
        """Call listener(store) after every commit, including replays."""
        self._listeners.append(listener)

    def update_graph(
        self,
        mutator: Mutator,
        relayout: bool = True,
        layout_options: LayoutOptions | None = None,
    ) -> bool:
        """Run mutator against copies of the current graph and commit.

        Args:
            mutator: ``(nodes, edges) -> (nodes, edges) | None``.
            relayout: Rerun the layout engine over the visible subset.
                Pass False for edits that do not change structure so
                existing positions are kept.
            layout_options: Override the pipeline's layout options once.

        Returns:
            True if a new state was committed, False for a no-op.
        """
        prev_nodes = self.store.copy_nodes()
        prev_edges = self.store.copy_edges()
        result = mutator(prev_nodes, prev_edges)
        if result is None:
            logger.debug("Mutator returned None; nothing committed")
            return False

        next_nodes, next_edges = enforce_forest(*result)
        info = resolve_visibility(next_nodes, next_edges)

        if relayout:
            visible_nodes = [node for node in next_nodes if info.is_visible(node.id)]
            visible_edges = [
                edge
                for edge in next_edges
                if info.is_visible(edge.source) and info.is_visible(edge.target)
            ]
            laid_out = {
                node.id: node
                for node in layout_nodes(
                    visible_nodes, visible_edges, layout_options or self.layout_options
                )
            }
            processed = []
            for node in next_nodes:
                placed = laid_out.get(node.id)
                if placed is None:
                    processed.append(node)
                else:
                    processed.append(
                        node.moved_to(placed.position.x, placed.position.y, placed.level)
                    )
        else:
            previous = {node.id: node.position for node in self.store.all_nodes()}
            processed = []
            for node in next_nodes:
                old = previous.get(node.id)
                processed.append(node.moved_to(old.x, old.y) if old else node)

        all_nodes, _, _ = apply_collapse_state(processed, next_edges, info)
        normalized_edges = [edge.normalized() for edge in next_edges]

        self._commit(all_nodes, normalized_edges, info.visible_ids)
        if not self._restoring:
            self.history.push(Snapshot.capture(all_nodes, normalized_edges, self.viewport))
        return True

    def restore(self, snapshot: Snapshot) -> None:
        """Replay a stored snapshot without recording a new entry.

        Collapse flags are part of the snapshot, so only visibility is
        reapplied; positions are taken as stored.
        """
        self._restoring = True
        try:
            nodes = snapshot.copy_nodes()
            edges = snapshot.copy_edges()
            info = resolve_visibility(nodes, edges)
            all_nodes, _, _ = apply_collapse_state(nodes, edges, info)
            if snapshot.viewport is not None:
                self.viewport = snapshot.viewport
            self._commit(all_nodes, edges, info.visible_ids)
        finally:
            self._restoring = False
        logger.debug("Restored snapshot %s", snapshot)

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False at the oldest entry."""
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.restore(snapshot)
        return True

    def redo(self) -> bool:
        """Restore the next snapshot. Returns False at the newest entry."""
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.restore(snapshot)
        return True

    def _commit(self, nodes: list[GraphNode], edges: list[Edge], visible_ids) -> None:
        self.store.commit(nodes, edges, visible_ids)
        for listener in self._listeners:
            listener(self.store)
