"""Unit tests for navigation graph construction."""

from __future__ import annotations

import pytest

from wayfinder.campus import CampusData, Level, Point, Unit, UnitType
from wayfinder.config import RoutingConfig
from wayfinder.geometry import haversine_distance
from wayfinder.navigation_graph import (
    UNIT_ROLES,
    EdgeKind,
    NavigationGraph,
    NavNode,
    NodeKind,
    build_navigation_graph,
    is_traversable,
    waypoint_id,
)
from wayfinder.pathfinding import path_weight, shortest_path


def _unit(unit_id: str, unit_type: UnitType, level_id: str, coords, **extra) -> Unit:
    return Unit(
        id=unit_id,
        name=unit_id,
        type=unit_type,
        level_id=level_id,
        polygon=[Point(x=x, y=y) for x, y in coords],
        **extra,
    )


def _rect(x0: float, y0: float, x1: float, y1: float) -> list[tuple[float, float]]:
    return [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]


def _edge(graph: NavigationGraph, a: str, b: str):
    matches = [e for e in graph.edges_from(a) if e.to_id == b]
    assert len(matches) == 1, f"expected exactly one edge {a}->{b}"
    return matches[0]


def test_every_unit_type_has_a_role() -> None:
    """Adding a UnitType member requires classifying it."""
    assert set(UNIT_ROLES) == set(UnitType)


def test_restricted_and_opted_out_units_are_not_nodes(sample_campus: CampusData) -> None:
    graph = build_navigation_graph(sample_campus)

    assert not graph.has_node("U107")
    assert graph.node("U100").kind is NodeKind.CENTER
    assert graph.node("U100").point == pytest.approx((60.0, 400.0))

    opted_out = _unit("X", UnitType.OFFICE, "L1", _rect(0, 0, 1, 1), accessible=False)
    assert not is_traversable(opted_out)
    assert is_traversable(opted_out, respect_accessible_flag=False)
    restricted = _unit("R", UnitType.RESTRICTED, "L1", _rect(0, 0, 1, 1), accessible=True)
    assert not is_traversable(restricted, respect_accessible_flag=False)


def test_transit_pairs_link_centroids_directly(sample_campus: CampusData) -> None:
    graph = build_navigation_graph(sample_campus)

    edge = _edge(graph, "U101", "U108")
    assert edge.kind is EdgeKind.HORIZONTAL
    assert edge.weight == pytest.approx(210.0)
    assert _edge(graph, "U100", "U103").weight == pytest.approx(65.0)


def test_rooms_connect_through_doorway_waypoints(sample_campus: CampusData) -> None:
    graph = build_navigation_graph(sample_campus)
    door_id = waypoint_id("U104", "U101")

    door = graph.node(door_id)
    assert door_id == "door-U101--U104"
    assert door.kind is NodeKind.WAYPOINT
    assert door.point == pytest.approx((225.0, 250.0))
    assert door.level_id == "L1"
    assert door.original_unit_id == "U104"

    assert not [e for e in graph.edges_from("U101") if e.to_id == "U104"]
    assert _edge(graph, "U101", door_id).weight == pytest.approx(55.9016994)
    assert _edge(graph, door_id, "U104").weight == pytest.approx(75.0)


def test_edges_are_stored_symmetrically(sample_campus: CampusData) -> None:
    graph = build_navigation_graph(sample_campus)

    for node_id in graph.nodes:
        for edge in graph.edges_from(node_id):
            back = [e for e in graph.edges_from(edge.to_id) if e.to_id == node_id and e.kind is edge.kind]
            assert len(back) == 1
            assert back[0].weight == edge.weight


def test_vertical_edges_join_consecutive_floors_with_penalty(sample_campus: CampusData) -> None:
    config = RoutingConfig(vertical_penalty=40.0)
    graph = build_navigation_graph(sample_campus, config)

    stairs = _edge(graph, "U108", "U208")
    assert stairs.kind is EdgeKind.VERTICAL
    assert stairs.weight == pytest.approx(600.0 + 40.0)
    assert _edge(graph, "U109", "U209").kind is EdgeKind.VERTICAL


def test_vertical_connector_links_adjacent_floors_only() -> None:
    levels = [
        Level(id="L3", z_index=20),
        Level(id="L1", z_index=0),
        Level(id="L2", z_index=10),
    ]
    units = [
        _unit(f"E{lvl}", UnitType.ELEVATOR, f"L{lvl}", _rect(0, 0, 2, 2), vertical_connector_id="V")
        for lvl in (3, 1, 2)
    ]
    graph = build_navigation_graph(CampusData(levels=levels, units=units), RoutingConfig(repair_isolated=False))

    neighbours = {e.to_id for e in graph.edges_from("E1")}
    assert neighbours == {"E2"}
    assert {e.to_id for e in graph.edges_from("E2")} == {"E1", "E3"}
    assert _edge(graph, "E1", "E2").weight == pytest.approx(RoutingConfig().vertical_penalty)


def test_multi_cell_connector_links_every_cell_to_the_next_floor() -> None:
    campus = CampusData(
        levels=[Level(id="L1"), Level(id="L2", z_index=1)],
        units=[
            _unit("S1a", UnitType.STAIRS, "L1", _rect(0, 0, 2, 2), vertical_connector_id="V1"),
            _unit("S1b", UnitType.STAIRS, "L1", _rect(10, 0, 12, 2), vertical_connector_id="V1"),
            _unit("S2", UnitType.STAIRS, "L2", _rect(0, 0, 2, 2), vertical_connector_id="V1"),
        ],
    )

    graph = build_navigation_graph(campus, RoutingConfig(repair_isolated=False))

    assert _edge(graph, "S1a", "S2").weight == pytest.approx(50.0)
    assert _edge(graph, "S1b", "S2").weight == pytest.approx(10.0 + 50.0)
    assert {e.to_id for e in graph.edges_from("S2")} == {"S1a", "S1b"}
    assert not [e for e in graph.edges_from("S1a") if e.to_id == "S1b"]
    assert shortest_path(graph, "S1a", "S2") == ["S1a", "S2"]
    assert shortest_path(graph, "S1b", "S2") == ["S1b", "S2"]


def test_build_is_idempotent(sample_campus: CampusData) -> None:
    first = build_navigation_graph(sample_campus)
    second = build_navigation_graph(sample_campus)

    assert set(first.nodes) == set(second.nodes)
    assert first.edge_set() == second.edge_set()
    assert first.edge_count == second.edge_count


def test_waypoint_ids_do_not_depend_on_unit_order(sample_campus: CampusData) -> None:
    reordered = sample_campus.model_copy(update={"units": list(reversed(sample_campus.units))})

    forward = build_navigation_graph(sample_campus)
    backward = build_navigation_graph(reordered)

    forward_doors = {n.id: n.original_unit_id for n in forward.nodes.values() if n.kind is NodeKind.WAYPOINT}
    backward_doors = {n.id: n.original_unit_id for n in backward.nodes.values() if n.kind is NodeKind.WAYPOINT}
    assert forward_doors == backward_doors
    assert forward.edge_set() == backward.edge_set()


def test_vertex_touch_has_no_edge_without_repair() -> None:
    campus = CampusData(
        levels=[Level(id="L1")],
        units=[
            _unit("A", UnitType.CORRIDOR, "L1", _rect(0, 0, 1, 1)),
            _unit("B", UnitType.CORRIDOR, "L1", _rect(1, 1, 2, 2)),
        ],
    )

    graph = build_navigation_graph(campus, RoutingConfig(repair_isolated=False))

    assert graph.edges_from("A") == []
    assert graph.edges_from("B") == []


def test_repair_pass_links_isolated_units_within_threshold() -> None:
    campus = CampusData(
        levels=[Level(id="L1")],
        units=[
            _unit("A", UnitType.CORRIDOR, "L1", _rect(0, 0, 1, 1)),
            _unit("B", UnitType.CLASSROOM, "L1", _rect(1, 1, 2, 2)),
            _unit("FAR", UnitType.OFFICE, "L1", _rect(500, 500, 501, 501)),
        ],
    )

    graph = build_navigation_graph(campus, RoutingConfig(repair_max_distance=10.0))

    edge = _edge(graph, "A", "B")
    assert edge.kind is EdgeKind.HORIZONTAL
    assert edge.weight == pytest.approx(2**0.5)
    assert graph.edges_from("FAR") == []


def test_repair_pass_stays_on_the_same_level() -> None:
    campus = CampusData(
        levels=[Level(id="L1"), Level(id="L2", z_index=1)],
        units=[
            _unit("A", UnitType.OFFICE, "L1", _rect(0, 0, 1, 1)),
            _unit("B", UnitType.OFFICE, "L2", _rect(0, 0, 1, 1)),
        ],
    )

    graph = build_navigation_graph(campus)

    assert graph.edges_from("A") == []
    assert graph.edges_from("B") == []


def test_empty_dataset_yields_empty_graph() -> None:
    graph = build_navigation_graph(CampusData())
    assert graph.node_count == 0
    assert graph.edge_count == 0


def test_empty_polygon_units_are_skipped() -> None:
    campus = CampusData(
        levels=[Level(id="L1")],
        units=[
            Unit(id="EMPTY", type=UnitType.CORRIDOR, level_id="L1"),
            _unit("A", UnitType.CORRIDOR, "L1", _rect(0, 0, 1, 1)),
        ],
    )

    graph = build_navigation_graph(campus)

    assert not graph.has_node("EMPTY")
    assert graph.has_node("A")


def test_add_edge_enforces_invariants() -> None:
    graph = NavigationGraph()
    graph.add_node(NavNode(id="a", kind=NodeKind.CENTER, point=(0, 0), level_id="L", original_unit_id="a"))
    graph.add_node(NavNode(id="b", kind=NodeKind.CENTER, point=(1, 0), level_id="L", original_unit_id="b"))

    assert graph.add_edge("a", "b", 1.0, EdgeKind.HORIZONTAL)
    assert not graph.add_edge("b", "a", 1.0, EdgeKind.HORIZONTAL)
    assert not graph.add_edge("a", "a", 1.0, EdgeKind.HORIZONTAL)
    assert graph.edge_count == 1
    assert len(graph.edges_from("b")) == 1

    with pytest.raises(ValueError, match="unknown node"):
        graph.add_edge("a", "missing", 1.0, EdgeKind.HORIZONTAL)
    with pytest.raises(ValueError, match="weight"):
        graph.add_edge("a", "b", -1.0, EdgeKind.VERTICAL)


def test_to_payload_lists_each_edge_once(sample_campus: CampusData) -> None:
    graph = build_navigation_graph(sample_campus)
    payload = graph.to_payload()

    assert payload["node_count"] == graph.node_count
    assert payload["edge_count"] == graph.edge_count
    assert len(payload["edges"]) == graph.edge_count


@pytest.fixture()
def lonlat_campus() -> CampusData:
    """Small lon/lat building near the equator, about 11 m per 1e-4 degrees."""
    office_west = 1e-4 + 3e-8
    return CampusData(
        levels=[Level(id="L1"), Level(id="L2", z_index=1)],
        units=[
            _unit("C", UnitType.CORRIDOR, "L1", _rect(0, 0, 1e-4, 1e-4)),
            _unit("R", UnitType.OFFICE, "L1", _rect(office_west, 0, 2e-4, 1e-4)),
            _unit("S1", UnitType.STAIRS, "L1", _rect(0, 1e-4, 1e-4, 2e-4), vertical_connector_id="V"),
            _unit("S2", UnitType.STAIRS, "L2", _rect(1e-5, 1e-4, 1.1e-4, 2e-4), vertical_connector_id="V"),
            _unit("F", UnitType.OFFICE, "L2", _rect(2.3e-4, 1.4e-4, 2.5e-4, 1.6e-4)),
            _unit("G", UnitType.OFFICE, "L2", _rect(1.19e-3, 1.4e-4, 1.21e-3, 1.6e-4)),
        ],
    )


def test_geodesic_doorway_tolerates_near_duplicate_vertices(lonlat_campus: CampusData) -> None:
    graph = build_navigation_graph(lonlat_campus, RoutingConfig.geodesic())

    door = graph.node("door-C--R")
    assert door.kind is NodeKind.WAYPOINT
    assert door.original_unit_id == "R"
    assert door.point == pytest.approx((1e-4, 5e-5), abs=1e-9)

    path = shortest_path(graph, "C", "R")
    assert path == ["C", "door-C--R", "R"]
    expected = haversine_distance(graph.node("C").point, door.point) + haversine_distance(
        door.point, graph.node("R").point
    )
    assert path_weight(graph, path) == pytest.approx(expected)
    assert path_weight(graph, path) == pytest.approx(11.12, abs=0.01)


def test_geodesic_vertical_weight_is_meters_plus_penalty(lonlat_campus: CampusData) -> None:
    config = RoutingConfig.geodesic()
    graph = build_navigation_graph(lonlat_campus, config)

    stairs = _edge(graph, "S1", "S2")
    offset_m = haversine_distance(graph.node("S1").point, graph.node("S2").point)
    assert stairs.kind is EdgeKind.VERTICAL
    assert offset_m == pytest.approx(1.11, abs=0.01)
    assert stairs.weight == pytest.approx(offset_m + config.vertical_penalty)
    assert config.vertical_penalty == pytest.approx(20.0)


def test_geodesic_repair_threshold_is_in_meters(lonlat_campus: CampusData) -> None:
    graph = build_navigation_graph(lonlat_campus, RoutingConfig.geodesic())

    repaired = _edge(graph, "F", "S2")
    assert repaired.kind is EdgeKind.HORIZONTAL
    assert repaired.weight == pytest.approx(20.0, abs=0.1)
    # G sits roughly 107 m from F, beyond the 30 m limit.
    assert graph.edges_from("G") == []
