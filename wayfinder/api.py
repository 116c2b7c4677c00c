"""FastAPI routes for campus dataset loading and indoor route queries.

Flow:
- `POST /campus` loads a CampusData payload and rebuilds the navigation graph.
- `POST /route` solves a unit-to-unit route under an accessibility filter.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from wayfinder.campus import CampusData
from wayfinder.config import RoutingConfig
from wayfinder.geometry_validation import validate_campus
from wayfinder.pathfinding import AccessibilityFilter
from wayfinder.router import CampusRouter
from wayfinder.utils import route_payload

logger = logging.getLogger(__name__)


@dataclass
class ServiceState:
    """In-memory state for the latest loaded campus dataset."""

    router: CampusRouter | None = None
    validation_report: dict[str, Any] | None = None


STATE = ServiceState()


class RouteRequest(BaseModel):
    """Request payload for unit-to-unit routing."""

    start_unit_id: str = Field(..., min_length=1)
    goal_unit_id: str = Field(..., min_length=1)
    accessibility: AccessibilityFilter = AccessibilityFilter.NONE


class WaypointPoint(BaseModel):
    x: float
    y: float


class RouteWaypoint(BaseModel):
    point: WaypointPoint
    level_id: str
    node_id: str


class RouteResponse(BaseModel):
    """Response payload for route queries."""

    node_path: list[str]
    unit_path: list[str]
    waypoints: list[RouteWaypoint]
    distance: float
    level_ids: list[str]
    steps: list[dict[str, Any]]


def load_dataset(campus: CampusData, config: RoutingConfig | None = None) -> dict[str, Any]:
    """Build router + validation report for `campus` and store them in STATE."""
    router = CampusRouter(campus, config or RoutingConfig.from_env())
    report = validate_campus(campus, graph=router.graph, config=router.config)

    STATE.router = router
    STATE.validation_report = report

    logger.info(
        "Loaded campus dataset: %d levels, %d units, %d graph nodes, %d graph edges",
        len(campus.levels),
        len(campus.units),
        router.graph.node_count,
        router.graph.edge_count,
    )
    return {
        "message": "Campus dataset loaded successfully",
        "level_count": len(campus.levels),
        "unit_count": len(campus.units),
        "node_count": router.graph.node_count,
        "edge_count": router.graph.edge_count,
        "distance_mode": router.config.distance_mode.value,
        "validation_report": report,
    }


def _latest_router_or_400() -> CampusRouter:
    """Get router for the loaded dataset or raise 400."""
    if STATE.router is None:
        raise HTTPException(status_code=400, detail="No campus dataset loaded yet")
    return STATE.router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Campus Wayfinder API", version="1.0.0")

    raw_origins = os.getenv("WAYFINDER_CORS_ORIGINS", "*").strip()
    if raw_origins == "*":
        cors_origins = ["*"]
        allow_credentials = False
    else:
        cors_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
        allow_credentials = True

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Health endpoint with loaded-dataset metadata."""
        router = STATE.router
        return {
            "status": "ok",
            "version": app.version,
            "dataset_loaded": router is not None,
            "distance_mode": router.config.distance_mode.value if router is not None else None,
        }

    @app.post("/campus")
    def load_campus(payload: CampusData) -> dict[str, Any]:
        """Load a campus dataset and rebuild the navigation graph."""
        if not payload.units:
            raise HTTPException(status_code=400, detail="Campus dataset has no units")
        try:
            return load_dataset(payload)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Campus loading failed: {exc}") from exc
        except Exception as exc:  # pragma: no cover - safety net
            logger.exception("Unexpected campus loading error")
            raise HTTPException(status_code=500, detail=f"Unexpected campus loading error: {exc}") from exc

    @app.get("/levels")
    async def get_levels() -> dict[str, Any]:
        """Return levels of the loaded dataset ordered bottom to top."""
        router = _latest_router_or_400()
        levels = sorted(router.campus.levels, key=lambda lv: (lv.z_index, lv.id))
        return {"levels": [level.model_dump(by_alias=True) for level in levels]}

    @app.get("/units")
    async def get_units(level_id: str | None = Query(default=None)) -> dict[str, Any]:
        """Return units of the loaded dataset, optionally for one level."""
        router = _latest_router_or_400()
        if level_id is None:
            units = router.campus.units
        else:
            if level_id not in router.campus.level_by_id():
                raise HTTPException(status_code=404, detail=f"Level '{level_id}' was not found")
            units = router.campus.units_on_level(level_id)
        return {"units": [unit.model_dump(by_alias=True, mode="json") for unit in units]}

    @app.get("/navigation-graph")
    async def get_navigation_graph() -> dict[str, Any]:
        """Return the navigation graph of the loaded dataset."""
        router = _latest_router_or_400()
        return router.graph.to_payload()

    @app.get("/validation-report")
    async def get_validation_report() -> dict[str, Any]:
        _latest_router_or_400()
        return STATE.validation_report or {}

    @app.post("/route", response_model=RouteResponse)
    def find_route(payload: RouteRequest) -> RouteResponse:
        """Compute shortest unit-to-unit route on the loaded dataset."""
        router = _latest_router_or_400()

        for label, unit_id in (("start", payload.start_unit_id), ("goal", payload.goal_unit_id)):
            if not router.graph.has_node(unit_id):
                raise HTTPException(status_code=404, detail=f"Unknown {label} unit '{unit_id}'")

        try:
            route = router.route(payload.start_unit_id, payload.goal_unit_id, payload.accessibility)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid route query: {exc}") from exc
        except Exception as exc:  # pragma: no cover - safety net
            logger.exception("Unexpected routing error")
            raise HTTPException(status_code=500, detail=f"Unexpected routing error: {exc}") from exc

        if route is None:
            raise HTTPException(status_code=404, detail="No route found")

        return RouteResponse(**route_payload(route), steps=router.describe(route))

    return app
