"""Turn solved node paths into level-tagged waypoints and route distances."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from wayfinder.campus import CampusData
from wayfinder.config import RoutingConfig
from wayfinder.geometry import XY, DistanceMode, distance
from wayfinder.navigation_graph import NavigationGraph, NodeKind


@dataclass(slots=True)
class Waypoint:
    point: XY
    level_id: str
    node_id: str


@dataclass(slots=True)
class Route:
    """Materialized route handed to renderers and the instruction generator."""

    node_path: list[str]
    unit_path: list[str]
    waypoints: list[Waypoint]
    distance: float
    level_ids: list[str] = field(default_factory=list)


def path_to_waypoints(graph: NavigationGraph, path: Sequence[str]) -> list[Waypoint]:
    """Map node ids to stored points; ids missing from the graph are dropped."""
    waypoints: list[Waypoint] = []
    for node_id in path:
        node = graph.nodes.get(node_id)
        if node is None:
            continue
        waypoints.append(Waypoint(point=node.point, level_id=node.level_id, node_id=node.id))
    return waypoints


def path_distance(waypoints: Sequence[Waypoint], mode: DistanceMode, epsilon: float) -> float:
    """Sum distances between consecutive same-level waypoints.

    Consecutive waypoints on different levels contribute 0: vertical travel is
    not part of the reported walking distance.
    """
    total = 0.0
    for a, b in zip(waypoints, waypoints[1:]):
        if a.level_id != b.level_id:
            continue
        total += distance(a.point, b.point, mode, epsilon)
    return total


def unit_path(graph: NavigationGraph, path: Sequence[str]) -> list[str]:
    """Unit ids visited by `path`, without doorway nodes or repeats."""
    units: list[str] = []
    for node_id in path:
        node = graph.nodes.get(node_id)
        if node is None or node.kind is not NodeKind.CENTER:
            continue
        if units and units[-1] == node.original_unit_id:
            continue
        units.append(node.original_unit_id)
    return units


def _visited_levels(waypoints: Sequence[Waypoint]) -> list[str]:
    levels: list[str] = []
    for wp in waypoints:
        if not levels or levels[-1] != wp.level_id:
            levels.append(wp.level_id)
    return levels


def materialize_route(
    graph: NavigationGraph,
    path: Sequence[str],
    config: RoutingConfig | None = None,
) -> Route:
    """Build a Route from a solved node path."""
    config = config or RoutingConfig()
    waypoints = path_to_waypoints(graph, path)
    return Route(
        node_path=list(path),
        unit_path=unit_path(graph, path),
        waypoints=waypoints,
        distance=path_distance(waypoints, config.distance_mode, config.epsilon),
        level_ids=_visited_levels(waypoints),
    )


def describe_route(campus: CampusData, unit_ids: Sequence[str]) -> list[dict[str, Any]]:
    """Ordered unit/level metadata rows for the instruction generator."""
    units = campus.unit_by_id()
    levels = campus.level_by_id()
    steps: list[dict[str, Any]] = []
    for unit_id in unit_ids:
        unit = units.get(unit_id)
        if unit is None:
            continue
        level = levels.get(unit.level_id)
        steps.append(
            {
                "unit_id": unit.id,
                "name": unit.name or unit.id,
                "type": unit.type.value,
                "level_id": unit.level_id,
                "level_name": level.name if level is not None else None,
            }
        )
    return steps
