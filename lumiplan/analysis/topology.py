"""Phase-tagged wiring segments and worst-case run per phase."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set

from lumiplan.network.graph import EdgeKey, RoadGraph, edge_key
from lumiplan.network.routing import ShortestPathTree, connected_component
from lumiplan.schema.models import MIXED, PHASES, Light, PhaseRoute, WireSegment


@dataclass
class Topology:
    segments: List[WireSegment] = field(default_factory=list)
    routing: Dict[int, PhaseRoute] = field(default_factory=dict)


def _segment(graph: RoadGraph, key: EdgeKey, phase, panel_id: int) -> WireSegment:
    u, v = key
    return WireSegment(path=(graph.points[u], graph.points[v]), phase=phase, panel_id=panel_id)


def extract_topology(
    graph: RoadGraph,
    tree: ShortestPathTree,
    lights: Sequence[Light],
    nearest: Mapping[str, Optional[int]],
    panel_id: int,
) -> Topology:
    if tree.empty:
        return Topology()

    edge_phases: Dict[EdgeKey, Set[int]] = {}
    for light in lights:
        node = nearest.get(light.id)
        if light.phase is None or not tree.reachable(node):
            continue
        for child, parent in tree.iter_tree_edges(node):
            edge_phases.setdefault(edge_key(child, parent), set()).add(light.phase)

    segments: List[WireSegment] = []
    for key, used in edge_phases.items():
        phase = next(iter(used)) if len(used) == 1 else MIXED
        segments.append(_segment(graph, key, phase, panel_id))

    # islands carry their own internal wiring in the island's phase
    stranded = [
        light
        for light in lights
        if light.phase is not None and nearest.get(light.id) is not None and not tree.reachable(nearest[light.id])
    ]
    seen: Set[str] = set()
    for light in stranded:
        if light.id in seen:
            continue
        component = connected_component(graph, nearest[light.id])
        members = [l for l in stranded if nearest[l.id] in component]
        seen.update(l.id for l in members)
        island_phase = members[0].phase
        for u in sorted(component):
            for v in graph.neighbors(u):
                if u < v and v in component:
                    segments.append(_segment(graph, (u, v), island_phase, panel_id))

    routing: Dict[int, PhaseRoute] = {phase: PhaseRoute() for phase in PHASES}
    for light in lights:
        node = nearest.get(light.id)
        if light.phase is None or not tree.reachable(node):
            continue
        distance = tree.distance(node)
        if distance > routing[light.phase].distance_m:
            path = tuple(graph.points[n] for n in tree.path_from_root(node))
            routing[light.phase] = PhaseRoute(distance_m=distance, path=path)

    return Topology(segments=segments, routing=routing)


__all__ = ["Topology", "extract_topology"]
