"""Road graph construction and shortest-path routing."""
from .graph import STITCH_THRESHOLD_M, RoadGraph, build_graph
from .routing import ShortestPathTree, connected_component, shortest_path_tree

__all__ = [
    "STITCH_THRESHOLD_M",
    "RoadGraph",
    "ShortestPathTree",
    "build_graph",
    "connected_component",
    "shortest_path_tree",
]
