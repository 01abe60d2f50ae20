"""Weighted undirected graph built from road polylines and manual links."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import networkx as nx

from lumiplan.geo.geometry import distance_m, node_key
from lumiplan.schema.models import Coordinate, Light, ManualLink, Road

logger = logging.getLogger(__name__)

STITCH_THRESHOLD_M = 5.0  # joins road ends that miss each other at intersections

EdgeKey = Tuple[int, int]


def edge_key(u: int, v: int) -> EdgeKey:
    return (u, v) if u < v else (v, u)


class RoadGraph:
    """Nodes are quantized coordinates addressed by integer index.

    ``graph`` is the underlying ``networkx.Graph``; node ``i`` sits at
    ``points[i]`` and edges carry their length in metres as ``weight``.
    """

    def __init__(self) -> None:
        self.graph = nx.Graph()
        self.points: List[Coordinate] = []
        self.index: Dict[Tuple[int, int], int] = {}

    def __len__(self) -> int:
        return len(self.points)

    @property
    def edges(self) -> Dict[EdgeKey, float]:
        return {edge_key(u, v): w for u, v, w in self.graph.edges(data="weight")}

    def add_node(self, coord: Coordinate) -> int:
        key = node_key(coord)
        idx = self.index.get(key)
        if idx is None:
            idx = len(self.points)
            self.index[key] = idx
            self.points.append(coord)
            self.graph.add_node(idx)
        return idx

    def add_edge(self, u: int, v: int, weight: float) -> bool:
        """Add ``u``-``v``; self-loops and repeated pairs are ignored."""

        if u == v or self.graph.has_edge(u, v):
            return False
        self.graph.add_edge(u, v, weight=weight)
        return True

    def has_edge(self, u: int, v: int) -> bool:
        return self.graph.has_edge(u, v)

    def neighbors(self, u: int) -> List[int]:
        return list(self.graph.neighbors(u))

    def node_for(self, coord: Coordinate) -> Optional[int]:
        return self.index.get(node_key(coord))

    def nearest_node(self, coord: Coordinate) -> Optional[int]:
        best = (float("inf"), None)
        for idx, point in enumerate(self.points):
            d = distance_m(coord, point)
            if d < best[0]:
                best = (d, idx)
        return best[1]

    def stitch(self, threshold_m: float = STITCH_THRESHOLD_M) -> int:
        """Join every unconnected node pair closer than ``threshold_m``."""

        added = 0
        count = len(self.points)
        for i in range(count):
            for j in range(i + 1, count):
                if self.has_edge(i, j):
                    continue
                d = distance_m(self.points[i], self.points[j])
                if 0 < d < threshold_m:
                    self.add_edge(i, j, d)
                    added += 1
        return added


def panel_links(
    links: Iterable[ManualLink],
    lights: Mapping[str, Light],
    panel_id: int,
) -> List[Tuple[Light, Light]]:
    pairs: List[Tuple[Light, Light]] = []
    for link in links:
        start = lights.get(link.start_light_id)
        end = lights.get(link.end_light_id)
        if start is None or end is None:
            continue
        if start.panel_id == panel_id and end.panel_id == panel_id:
            pairs.append((start, end))
    return pairs


def build_graph(
    roads: Iterable[Road],
    links: Iterable[ManualLink] = (),
    lights: Optional[Mapping[str, Light]] = None,
    panel_id: Optional[int] = None,
    stitch_threshold_m: float = STITCH_THRESHOLD_M,
) -> RoadGraph:
    """Build the graph for one panel: road segments, that panel's manual
    links, then stitching of near-miss nodes."""

    graph = RoadGraph()
    for road in roads:
        for i in range(len(road.path) - 1):
            a, b = road.path[i], road.path[i + 1]
            graph.add_edge(graph.add_node(a), graph.add_node(b), distance_m(a, b))

    link_count = 0
    if lights is not None and panel_id is not None:
        for start, end in panel_links(links, lights, panel_id):
            u = graph.add_node(start.position)
            v = graph.add_node(end.position)
            if graph.add_edge(u, v, distance_m(start.position, end.position)):
                link_count += 1

    stitched = graph.stitch(stitch_threshold_m)
    logger.debug(
        "graph built for panel %s: %d nodes, %d edges (%d links, %d stitched)",
        panel_id,
        len(graph),
        graph.graph.number_of_edges(),
        link_count,
        stitched,
    )
    return graph


__all__ = ["STITCH_THRESHOLD_M", "RoadGraph", "build_graph", "edge_key", "panel_links"]
