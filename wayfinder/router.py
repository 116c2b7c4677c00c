"""Per-dataset routing session: one campus, one graph, many route queries."""

from __future__ import annotations

import logging

from wayfinder.campus import CampusData
from wayfinder.config import RoutingConfig
from wayfinder.navigation_graph import NavigationGraph, build_navigation_graph
from wayfinder.pathfinding import AccessibilityFilter, EdgeFilter, shortest_path
from wayfinder.route import Route, describe_route, materialize_route

logger = logging.getLogger(__name__)


class CampusRouter:
    """Owns the navigation graph derived from a CampusData snapshot.

    The graph is rebuilt from scratch on construction and on `reload`; there
    is no incremental update.
    """

    def __init__(self, campus: CampusData, config: RoutingConfig | None = None) -> None:
        self.config = config or RoutingConfig()
        self.campus = campus
        self.graph: NavigationGraph = build_navigation_graph(campus, self.config)

    def reload(self, campus: CampusData) -> None:
        self.campus = campus
        self.graph = build_navigation_graph(campus, self.config)

    def find_path(
        self,
        start_id: str,
        end_id: str,
        accessibility: AccessibilityFilter | str | EdgeFilter | None = AccessibilityFilter.NONE,
    ) -> list[str] | None:
        return shortest_path(self.graph, start_id, end_id, accessibility)

    def route(
        self,
        start_id: str,
        end_id: str,
        accessibility: AccessibilityFilter | str | EdgeFilter | None = AccessibilityFilter.NONE,
    ) -> Route | None:
        """Solve and materialize a route; None when no path exists."""
        path = self.find_path(start_id, end_id, accessibility)
        if path is None:
            logger.debug("No route from %s to %s (filter=%s)", start_id, end_id, accessibility)
            return None
        return materialize_route(self.graph, path, self.config)

    def describe(self, route: Route) -> list[dict]:
        return describe_route(self.campus, route.unit_path)
