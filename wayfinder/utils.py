"""Utility helpers shared across wayfinder modules.

Purpose:
- Convert route structures into JSON-safe payloads for API clients.
"""

from __future__ import annotations

from typing import Any, Iterable

from wayfinder.geometry import XY
from wayfinder.route import Route, Waypoint


def point_to_dict(point: XY) -> dict[str, float]:
    """Convert an `(x, y)` tuple to a JSON-friendly dictionary."""
    return {"x": float(point[0]), "y": float(point[1])}


def to_serializable_waypoints(waypoints: Iterable[Waypoint]) -> list[dict[str, Any]]:
    """Convert waypoints to `{point, level_id, node_id}` dictionaries."""
    return [
        {"point": point_to_dict(wp.point), "level_id": wp.level_id, "node_id": wp.node_id}
        for wp in waypoints
    ]


def route_payload(route: Route) -> dict[str, Any]:
    """JSON-safe route summary for renderers."""
    return {
        "node_path": list(route.node_path),
        "unit_path": list(route.unit_path),
        "waypoints": to_serializable_waypoints(route.waypoints),
        "distance": float(route.distance),
        "level_ids": list(route.level_ids),
    }
