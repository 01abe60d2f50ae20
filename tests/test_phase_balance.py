import math

import pytest

from lumiplan.analysis.phase_balance import balance_phases, least_loaded_phase
from lumiplan.network.graph import RoadGraph, build_graph
from lumiplan.network.routing import ShortestPathTree, shortest_path_tree
from lumiplan.schema.models import Light, Road


def _balance(roads, lights, root_position):
    graph = build_graph(roads)
    tree = shortest_path_tree(graph, graph.nearest_node(root_position))
    nearest = {light.id: graph.nearest_node(light.position) for light in lights}
    return balance_phases(graph, tree, lights, nearest)


def test_heaviest_branch_goes_first(at, star_roads, star_lights):
    result = _balance(star_roads, star_lights, at(0))
    assert result.phases == {"n": 1, "e": 2, "s": 3}
    assert result.loads == {1: 500.0, 2: 300.0, 3: 200.0}
    assert [b.power_w for b in result.branches] == [500.0, 300.0, 200.0]


def test_branch_lights_share_a_phase(at):
    roads = [
        Road(id="n", name="", path=(at(0), at(50), at(100))),
        Road(id="s", name="", path=(at(0), at(-100))),
    ]
    lights = [
        Light(id="n1", road_id="n", position=at(50), power_w=42),
        Light(id="n2", road_id="n", position=at(100), power_w=42),
        Light(id="s1", road_id="s", position=at(-100), power_w=42),
    ]
    result = _balance(roads, lights, at(0))
    assert result.phases["n1"] == result.phases["n2"] == 1
    assert result.phases["s1"] == 2


def test_spread_is_bounded_by_heaviest_branch(at):
    powers = [40.0, 50.0, 60.0, 70.0, 80.0, 35.0]
    roads, lights = [], []
    for i, power in enumerate(powers):
        angle = 2 * math.pi * i / len(powers)
        tip = at(100 * math.cos(angle), 100 * math.sin(angle))
        roads.append(Road(id=f"r{i}", name="", path=(at(0), tip)))
        lights.append(Light(id=f"l{i}", road_id=f"r{i}", position=tip, power_w=power))
    result = _balance(roads, lights, at(0))
    assert all(phase in (1, 2, 3) for phase in result.phases.values())
    assert max(result.loads.values()) - min(result.loads.values()) <= max(powers)
    assert sum(result.loads.values()) == pytest.approx(sum(powers))


def test_island_is_placed_as_a_unit(at):
    roads = [
        Road(id="main", name="", path=(at(0), at(100))),
        Road(id="island", name="", path=(at(1000), at(1050))),
    ]
    lights = [
        Light(id="m", road_id="main", position=at(100), power_w=100),
        Light(id="i1", road_id="island", position=at(1000), power_w=42),
        Light(id="i2", road_id="island", position=at(1050), power_w=42),
    ]
    result = _balance(roads, lights, at(0))
    assert result.phases["m"] == 1
    assert result.phases["i1"] == result.phases["i2"] == 2
    assert [[l.id for l in island] for island in result.islands] == [["i1", "i2"]]
    assert result.loads[2] == pytest.approx(84.0)


def test_root_lights_are_placed_last(at, star_roads, star_lights):
    lights = star_lights + [Light(id="root", road_id="north", position=at(0), power_w=10)]
    result = _balance(star_roads, lights, at(0))
    assert result.phases["root"] == 3
    assert result.loads[3] == pytest.approx(210.0)


def test_empty_tree_leaves_phases_unset(star_lights):
    result = balance_phases(RoadGraph(), ShortestPathTree(), star_lights, {})
    assert set(result.phases.values()) == {None}


def test_least_loaded_ties_go_low():
    assert least_loaded_phase({1: 0.0, 2: 0.0, 3: 0.0}) == 1
    assert least_loaded_phase({1: 5.0, 2: 1.0, 3: 1.0}) == 2
