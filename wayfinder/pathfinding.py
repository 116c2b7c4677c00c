"""Dijkstra shortest-path search over navigation graphs.

Purpose:
- Compute minimum-weight node paths between two graph nodes.
- Prune edges per request with an accessibility filter.

Usage example:
    >>> from wayfinder.pathfinding import AccessibilityFilter, shortest_path
    >>> shortest_path(graph, "U100", "U204", AccessibilityFilter.ELEVATOR_ONLY)
"""

from __future__ import annotations

import heapq
import math
from enum import Enum
from typing import Callable, Sequence

from wayfinder.campus import UnitType
from wayfinder.navigation_graph import EdgeKind, NavEdge, NavigationGraph, NavNode

EdgeFilter = Callable[[NavEdge, NavNode, NavNode], bool]


class AccessibilityFilter(str, Enum):
    """Named per-edge acceptance policies."""

    NONE = "NONE"
    ELEVATOR_ONLY = "ELEVATOR_ONLY"
    NO_STAIRS = "NO_STAIRS"
    SAME_LEVEL = "SAME_LEVEL"


def _accept_all(edge: NavEdge, from_node: NavNode, to_node: NavNode) -> bool:
    return True


def _elevator_only(edge: NavEdge, from_node: NavNode, to_node: NavNode) -> bool:
    if edge.kind is not EdgeKind.VERTICAL:
        return True
    return from_node.unit_type is UnitType.ELEVATOR and to_node.unit_type is UnitType.ELEVATOR


def _no_stairs(edge: NavEdge, from_node: NavNode, to_node: NavNode) -> bool:
    return from_node.unit_type is not UnitType.STAIRS and to_node.unit_type is not UnitType.STAIRS


def _same_level(edge: NavEdge, from_node: NavNode, to_node: NavNode) -> bool:
    return edge.kind is not EdgeKind.VERTICAL


_FILTERS: dict[AccessibilityFilter, EdgeFilter] = {
    AccessibilityFilter.NONE: _accept_all,
    AccessibilityFilter.ELEVATOR_ONLY: _elevator_only,
    AccessibilityFilter.NO_STAIRS: _no_stairs,
    AccessibilityFilter.SAME_LEVEL: _same_level,
}


def edge_filter_for(accessibility: AccessibilityFilter | str | EdgeFilter | None) -> EdgeFilter:
    """Resolve a filter name, enum member or predicate into a predicate.

    Raises:
        ValueError: If a string does not name a known filter.
    """
    if accessibility is None:
        return _accept_all
    if isinstance(accessibility, str):
        try:
            return _FILTERS[AccessibilityFilter(accessibility)]
        except ValueError as exc:
            raise ValueError(f"Unknown accessibility filter: {accessibility!r}") from exc
    if callable(accessibility):
        return accessibility
    raise ValueError(f"Unsupported accessibility filter: {accessibility!r}")


def shortest_path(
    graph: NavigationGraph,
    start_id: str,
    end_id: str,
    accessibility: AccessibilityFilter | str | EdgeFilter | None = AccessibilityFilter.NONE,
) -> list[str] | None:
    """Compute minimum-weight path via Dijkstra.

    Args:
        graph: Navigation graph to search.
        start_id: Start node id.
        end_id: End node id.
        accessibility: Filter enum/name, or a predicate
            `(edge, from_node, to_node) -> bool` returning False to skip the edge.

    Returns:
        Node ids from start to end, or None when an endpoint is unknown or no
        route survives the filter.

    Raises:
        ValueError: If graph is not a NavigationGraph or the filter is invalid.
    """
    if not isinstance(graph, NavigationGraph):
        raise ValueError("graph must be a NavigationGraph")
    accept = edge_filter_for(accessibility)

    if not start_id or not end_id:
        return None
    if not graph.has_node(start_id) or not graph.has_node(end_id):
        return None
    if start_id == end_id:
        return [start_id]

    open_heap: list[tuple[float, str]] = [(0.0, start_id)]
    dist: dict[str, float] = {start_id: 0.0}
    previous: dict[str, str] = {}
    closed: set[str] = set()

    while open_heap:
        current_dist, current = heapq.heappop(open_heap)
        if current in closed:
            continue
        if current == end_id:
            break
        closed.add(current)

        current_node = graph.node(current)
        for edge in graph.edges_from(current):
            if edge.to_id in closed:
                continue
            neighbor = graph.nodes.get(edge.to_id)
            if neighbor is None:
                continue
            if not accept(edge, current_node, neighbor):
                continue

            tentative = current_dist + edge.weight
            if tentative < dist.get(edge.to_id, math.inf):
                dist[edge.to_id] = tentative
                previous[edge.to_id] = current
                heapq.heappush(open_heap, (tentative, edge.to_id))

    if math.isinf(dist.get(end_id, math.inf)):
        return None

    path = [end_id]
    while path[-1] in previous:
        path.append(previous[path[-1]])
    path.reverse()

    return path if path[0] == start_id else None


def path_weight(graph: NavigationGraph, path: Sequence[str]) -> float:
    """Total weight of `path`, using the cheapest edge between consecutive nodes.

    Raises:
        ValueError: If two consecutive nodes are not adjacent.
    """
    total = 0.0
    for a, b in zip(path, path[1:]):
        weights = [e.weight for e in graph.edges_from(a) if e.to_id == b]
        if not weights:
            raise ValueError(f"Nodes {a!r} and {b!r} are not adjacent")
        total += min(weights)
    return total
