from dataclasses import replace

import pytest

from lumiplan.analysis.phase_balance import balance_phases
from lumiplan.analysis.topology import extract_topology
from lumiplan.network.graph import RoadGraph, build_graph
from lumiplan.network.routing import ShortestPathTree, shortest_path_tree
from lumiplan.schema.models import MIXED, Light, PhaseRoute, Road


def _extract(roads, lights, root_position, panel_id=1):
    graph = build_graph(roads)
    tree = shortest_path_tree(graph, graph.nearest_node(root_position))
    nearest = {light.id: graph.nearest_node(light.position) for light in lights}
    return graph, extract_topology(graph, tree, lights, nearest, panel_id)


def test_star_segments_follow_branch_phases(at, star_roads, star_lights):
    graph = build_graph(star_roads)
    tree = shortest_path_tree(graph, graph.nearest_node(at(0)))
    nearest = {light.id: graph.nearest_node(light.position) for light in star_lights}
    assignment = balance_phases(graph, tree, star_lights, nearest)
    lights = [replace(l, phase=assignment.phases[l.id]) for l in star_lights]

    topology = extract_topology(graph, tree, lights, nearest, panel_id=7)
    assert sorted(seg.phase for seg in topology.segments) == [1, 2, 3]
    assert {seg.panel_id for seg in topology.segments} == {7}
    assert topology.routing[1].distance_m == pytest.approx(100.0)
    assert topology.routing[1].path == (graph.points[tree.root], at(100))


def test_shared_edges_become_mixed(at):
    roads = [Road(id="r", name="", path=(at(0), at(50), at(100)))]
    lights = [
        Light(id="a", road_id="r", position=at(50), power_w=42, phase=1),
        Light(id="b", road_id="r", position=at(100), power_w=42, phase=2),
    ]
    _, topology = _extract(roads, lights, at(0))
    by_far_end = {max(p.lat for p in seg.path): seg.phase for seg in topology.segments}
    assert by_far_end[at(50).lat] == MIXED
    assert by_far_end[at(100).lat] == 2
    assert len(topology.segments) == 2


def test_routing_lists_every_phase(at):
    roads = [Road(id="r", name="", path=(at(0), at(60)))]
    lights = [Light(id="a", road_id="r", position=at(60), power_w=42, phase=3)]
    _, topology = _extract(roads, lights, at(0))
    assert set(topology.routing) == {1, 2, 3}
    assert topology.routing[1] == PhaseRoute()
    assert topology.routing[3].distance_m == pytest.approx(60.0)
    assert len(topology.routing[3].path) == 2


def test_island_wiring_uses_island_phase(at):
    roads = [
        Road(id="main", name="", path=(at(0), at(100))),
        Road(id="island", name="", path=(at(1000), at(1040), at(1080))),
    ]
    lights = [
        Light(id="m", road_id="main", position=at(100), power_w=42, phase=1),
        Light(id="i", road_id="island", position=at(1080), power_w=42, phase=2),
    ]
    _, topology = _extract(roads, lights, at(0))
    island_segments = [seg for seg in topology.segments if seg.path[0].lat > at(500).lat]
    assert len(island_segments) == 2
    assert {seg.phase for seg in island_segments} == {2}
    assert topology.routing[2] == PhaseRoute()


def test_empty_tree_gives_nothing(star_lights):
    topology = extract_topology(RoadGraph(), ShortestPathTree(), star_lights, {}, 1)
    assert topology.segments == []
    assert topology.routing == {}
