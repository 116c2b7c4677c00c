"""Geometry and topology checks for campus datasets before routing."""

from __future__ import annotations

from typing import Any

from shapely.geometry import LineString, Point, Polygon

from wayfinder.campus import CampusData, DetailType, Unit
from wayfinder.config import RoutingConfig
from wayfinder.geometry import euclidean_distance
from wayfinder.navigation_graph import VERTICAL_CONNECTOR_TYPES, NavigationGraph, is_traversable


def _issue(kind: str, severity: str, message: str, **context: Any) -> dict[str, Any]:
    payload = {"kind": kind, "severity": severity, "message": message}
    payload.update(context)
    return payload


def _unit_polygon_issues(unit: Unit, epsilon: float) -> list[dict[str, Any]]:
    coords = unit.coords()
    if not coords:
        return [_issue("unit_polygon_empty", "warning", "Unit polygon has no vertices", unit_id=unit.id)]
    if len(coords) < 3:
        return [
            _issue(
                "unit_polygon_degenerate",
                "warning",
                f"Unit polygon has {len(coords)} vertices, need at least 3",
                unit_id=unit.id,
            )
        ]

    issues: list[dict[str, Any]] = []
    for i in range(len(coords)):
        if euclidean_distance(coords[i], coords[(i + 1) % len(coords)]) < epsilon:
            issues.append(
                _issue("zero_length_edge", "warning", f"Edge {i} has zero length", unit_id=unit.id, edge_index=i)
            )

    if not Polygon(coords).is_valid:
        issues.append(
            _issue("unit_polygon_invalid", "warning", "Unit polygon is not a simple ring", unit_id=unit.id)
        )
    return issues


def validate_campus(
    campus: CampusData,
    graph: NavigationGraph | None = None,
    config: RoutingConfig | None = None,
    door_max_gap: float = 0.5,
) -> dict[str, Any]:
    """Validate unit geometry, level references, connectors and door placement.

    Args:
        campus: Dataset to check.
        graph: Optional graph built from `campus`; enables isolation checks.
        config: Supplies the coordinate epsilon.
        door_max_gap: Max distance (coordinate units) from a door detail to the
            nearest unit boundary on its level.

    Returns:
        Report dict with `ok`, `summary` counters and `issues`.
    """
    config = config or RoutingConfig()
    issues: list[dict[str, Any]] = []
    level_ids = {level.id for level in campus.levels}

    seen: set[str] = set()
    for unit in campus.units:
        if unit.id in seen:
            issues.append(_issue("duplicate_unit_id", "error", "Unit id is not unique", unit_id=unit.id))
        seen.add(unit.id)

        issues.extend(_unit_polygon_issues(unit, config.epsilon))

        if unit.level_id not in level_ids:
            issues.append(
                _issue("unknown_level", "warning", f"Level {unit.level_id!r} is not defined", unit_id=unit.id)
            )

        if unit.vertical_connector_id and unit.type not in VERTICAL_CONNECTOR_TYPES:
            issues.append(
                _issue(
                    "connector_wrong_type",
                    "warning",
                    f"{unit.type.value} unit carries vertical connector {unit.vertical_connector_id!r}",
                    unit_id=unit.id,
                )
            )

    connector_levels: dict[str, set[str]] = {}
    for unit in campus.units:
        if unit.vertical_connector_id and unit.type in VERTICAL_CONNECTOR_TYPES:
            connector_levels.setdefault(unit.vertical_connector_id, set()).add(unit.level_id)
    for connector_id, levels in sorted(connector_levels.items()):
        if len(levels) < 2:
            issues.append(
                _issue(
                    "connector_single_level",
                    "warning",
                    "Vertical connector spans fewer than two levels",
                    connector_id=connector_id,
                )
            )

    # Door details should sit on or next to some unit boundary of their level.
    boundaries_by_level: dict[str, list[LineString]] = {}
    for unit in campus.units:
        coords = unit.coords()
        if len(coords) >= 3:
            boundaries_by_level.setdefault(unit.level_id, []).append(LineString(coords + [coords[0]]))

    door_checks = 0
    for detail in campus.details:
        if detail.type is not DetailType.DOOR or not detail.line:
            continue
        door_checks += 1
        points = [p.as_tuple() for p in detail.line]
        door_geom = LineString(points) if len(points) >= 2 else Point(points[0])
        near_boundary = any(
            boundary.distance(door_geom) <= door_max_gap for boundary in boundaries_by_level.get(detail.level_id, [])
        )
        if not near_boundary:
            issues.append(
                _issue(
                    "door_clearance",
                    "warning",
                    f"Door is not within {door_max_gap:g} of any unit boundary",
                    detail_id=detail.id,
                    level_id=detail.level_id,
                )
            )

    if graph is not None:
        for unit in campus.units:
            if not is_traversable(unit, config.respect_accessible_flag):
                continue
            if graph.has_node(unit.id) and not graph.edges_from(unit.id):
                issues.append(
                    _issue("unit_isolated", "warning", "Traversable unit has no graph edges", unit_id=unit.id)
                )

    error_count = sum(1 for issue in issues if issue["severity"] == "error")
    warning_count = sum(1 for issue in issues if issue["severity"] == "warning")

    return {
        "ok": error_count == 0,
        "summary": {
            "levels": len(campus.levels),
            "units": len(campus.units),
            "door_checks": door_checks,
            "errors": error_count,
            "warnings": warning_count,
        },
        "issues": issues,
    }
