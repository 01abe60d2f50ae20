import networkx as nx
import pytest

from lumiplan.network.graph import RoadGraph, build_graph, panel_links
from lumiplan.schema.models import Light, ManualLink, Road


def test_roads_become_weighted_edges(at):
    graph = build_graph([Road(id="r", name="", path=(at(0), at(50), at(100)))])
    assert len(graph) == 3
    assert len(graph.edges) == 2
    assert all(abs(w - 50.0) < 1e-6 for w in graph.edges.values())


def test_shared_vertices_are_one_node(star_roads):
    graph = build_graph(star_roads)
    assert len(graph) == 4
    assert len(graph.neighbors(graph.node_for(star_roads[0].path[0]))) == 3


def test_repeated_segments_and_self_loops_are_ignored(at):
    road = Road(id="r", name="", path=(at(0), at(100)))
    loop = Road(id="loop", name="", path=(at(200), at(200)))
    graph = build_graph([road, road, loop], stitch_threshold_m=0)
    assert len(graph) == 3
    assert len(graph.edges) == 1


def test_stitch_joins_near_misses(at):
    a = Road(id="a", name="", path=(at(0), at(100)))
    b = Road(id="b", name="", path=(at(100, 3), at(100, 60)))
    graph = build_graph([a, b])
    end_a = graph.node_for(at(100))
    start_b = graph.node_for(at(100, 3))
    assert graph.has_edge(end_a, start_b)
    assert graph.has_edge(start_b, end_a)


def test_stitch_is_idempotent(at):
    a = Road(id="a", name="", path=(at(0), at(100)))
    b = Road(id="b", name="", path=(at(100, 3), at(100, 60)))
    graph = build_graph([a, b])
    edges = dict(graph.edges)
    assert graph.stitch() == 0
    assert graph.edges == edges


def test_stitch_respects_threshold(at):
    a = Road(id="a", name="", path=(at(0), at(100)))
    b = Road(id="b", name="", path=(at(100, 8), at(100, 60)))
    graph = build_graph([a, b])
    assert not graph.has_edge(graph.node_for(at(100)), graph.node_for(at(100, 8)))


def test_nearest_node(at):
    graph = build_graph([Road(id="r", name="", path=(at(0), at(100)))])
    assert graph.nearest_node(at(90)) == graph.node_for(at(100))
    assert RoadGraph().nearest_node(at(0)) is None


def test_only_links_inside_the_panel_enter_the_graph(at):
    lights = {
        "a": Light(id="a", road_id="manual", position=at(500), power_w=42, phase=1, panel_id=1),
        "b": Light(id="b", road_id="manual", position=at(500, 40), power_w=42, phase=1, panel_id=1),
        "c": Light(id="c", road_id="manual", position=at(600), power_w=42, phase=1, panel_id=2),
    }
    links = [
        ManualLink(id="l1", start_light_id="a", end_light_id="b"),
        ManualLink(id="l2", start_light_id="a", end_light_id="c"),
        ManualLink(id="l3", start_light_id="a", end_light_id="missing"),
    ]
    assert [(s.id, e.id) for s, e in panel_links(links, lights, 1)] == [("a", "b")]

    graph = build_graph([], links, lights, panel_id=1)
    assert len(graph) == 2
    assert graph.has_edge(graph.node_for(at(500)), graph.node_for(at(500, 40)))


def test_nodes_are_integer_indices_of_a_networkx_graph(at):
    graph = build_graph([Road(id="r", name="", path=(at(0), at(40)))])
    assert isinstance(graph.graph, nx.Graph)
    assert sorted(graph.graph.nodes) == [0, 1]
    assert graph.graph[0][1]["weight"] == pytest.approx(40.0)
