"""Single-source shortest paths from a panel's anchor node."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

import networkx as nx

from .graph import RoadGraph

logger = logging.getLogger(__name__)

INF = math.inf


@dataclass
class ShortestPathTree:
    """Dijkstra output indexed by node: distance from the root and parent pointer.

    Parent-chain walks are bounded by the node count; hitting the bound means
    the tree is malformed and the walk stops with what it has.
    """

    root: Optional[int] = None
    distances: List[float] = field(default_factory=list)
    parents: List[Optional[int]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.root is None

    def reachable(self, node: Optional[int]) -> bool:
        return node is not None and not self.empty and self.distances[node] < INF

    def distance(self, node: int) -> float:
        return self.distances[node] if not self.empty else INF

    def _guard_tripped(self, node: int) -> None:
        logger.warning("parent chain from node %d exceeded %d steps; walk aborted", node, len(self.parents))

    def iter_tree_edges(self, node: int) -> Iterator[Tuple[int, int]]:
        """Yield ``(child, parent)`` pairs from ``node`` up to the root."""

        current = node
        steps = 0
        limit = len(self.parents)
        while self.parents[current] is not None:
            if steps >= limit:
                self._guard_tripped(node)
                return
            parent = self.parents[current]
            yield current, parent
            current = parent
            steps += 1

    def branch_root(self, node: int) -> Optional[int]:
        """First hop from the root on the way to ``node``, if any."""

        for child, parent in self.iter_tree_edges(node):
            if parent == self.root:
                return child
        return None

    def path_from_root(self, node: int) -> List[int]:
        """Node indices from the root to ``node``; partial when the chain is broken."""

        path: List[int] = []
        current: Optional[int] = node
        steps = 0
        limit = len(self.parents)
        while current is not None and current != self.root:
            if steps >= limit:
                self._guard_tripped(node)
                break
            path.append(current)
            current = self.parents[current]
            steps += 1
        if current == self.root:
            path.append(self.root)
        path.reverse()
        return path


def shortest_path_tree(graph: RoadGraph, root: Optional[int]) -> ShortestPathTree:
    if root is None or len(graph) == 0:
        return ShortestPathTree()

    predecessors, lengths = nx.dijkstra_predecessor_and_distance(graph.graph, root, weight="weight")
    distances: List[float] = [INF] * len(graph)
    parents: List[Optional[int]] = [None] * len(graph)
    for node, length in lengths.items():
        distances[node] = length
        preds = predecessors.get(node)
        if preds:
            parents[node] = preds[0]
    return ShortestPathTree(root=root, distances=distances, parents=parents)


def connected_component(graph: RoadGraph, start: int) -> Set[int]:
    return set(nx.node_connected_component(graph.graph, start))


__all__ = ["INF", "ShortestPathTree", "connected_component", "shortest_path_tree"]
