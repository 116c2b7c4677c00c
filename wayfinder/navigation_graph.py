"""Navigation graph construction from campus unit polygons.

Nodes are unit centroids plus synthetic doorway waypoints on shared edges;
edges are undirected (stored in both directions) and tagged horizontal or
vertical.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from shapely.geometry import box
from shapely.strtree import STRtree

from wayfinder.campus import CampusData, Unit, UnitType
from wayfinder.config import RoutingConfig
from wayfinder.geometry import XY, centroid, distance, segment_midpoint, shared_edge

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    CENTER = "center"
    WAYPOINT = "waypoint"


class EdgeKind(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class UnitRole(str, Enum):
    """Whether a unit is mainly passed through or mainly a destination."""

    TRANSIT = "transit"
    DESTINATION = "destination"


UNIT_ROLES: dict[UnitType, UnitRole] = {
    UnitType.CORRIDOR: UnitRole.TRANSIT,
    UnitType.STAIRS: UnitRole.TRANSIT,
    UnitType.ELEVATOR: UnitRole.TRANSIT,
    UnitType.ENTRANCE: UnitRole.TRANSIT,
    UnitType.CLASSROOM: UnitRole.DESTINATION,
    UnitType.OFFICE: UnitRole.DESTINATION,
    UnitType.RESTAURANT: UnitRole.DESTINATION,
    UnitType.RESTRICTED: UnitRole.DESTINATION,
}

VERTICAL_CONNECTOR_TYPES = frozenset({UnitType.STAIRS, UnitType.ELEVATOR})


def unit_role(unit_type: UnitType) -> UnitRole:
    """Classify a unit type; raises KeyError for a type missing from UNIT_ROLES."""
    return UNIT_ROLES[unit_type]


def waypoint_id(unit_a_id: str, unit_b_id: str) -> str:
    """Deterministic doorway node id for an unordered unit pair."""
    first, second = sorted((unit_a_id, unit_b_id))
    return f"door-{first}--{second}"


@dataclass(slots=True)
class NavNode:
    """Graph node: a unit centroid or a doorway waypoint."""

    id: str
    kind: NodeKind
    point: XY
    level_id: str
    original_unit_id: str
    unit_type: UnitType | None = None


@dataclass(frozen=True, slots=True)
class NavEdge:
    from_id: str
    to_id: str
    weight: float
    kind: EdgeKind


@dataclass
class NavigationGraph:
    """Weighted undirected graph stored as a directed adjacency list."""

    nodes: dict[str, NavNode] = field(default_factory=dict)
    adjacency: dict[str, list[NavEdge]] = field(default_factory=dict)
    _edge_keys: set[tuple[str, str, EdgeKind]] = field(default_factory=set, repr=False)

    def add_node(self, node: NavNode) -> bool:
        """Insert a node; returns False when the id is already present."""
        if node.id in self.nodes:
            return False
        self.nodes[node.id] = node
        self.adjacency.setdefault(node.id, [])
        return True

    def add_edge(self, a: str, b: str, weight: float, kind: EdgeKind) -> bool:
        """Insert edge a<->b in both directions with equal weight.

        Returns False for self loops and for a repeated `(pair, kind)`.

        Raises:
            ValueError: If an endpoint is unknown or weight is negative/non-finite.
        """
        if a not in self.nodes or b not in self.nodes:
            raise ValueError(f"Cannot add edge {a!r} -> {b!r}: unknown node")
        weight = float(weight)
        if not math.isfinite(weight) or weight < 0:
            raise ValueError(f"Edge weight must be finite and >= 0, got {weight}")
        if a == b:
            return False

        u, v = sorted((a, b))
        key = (u, v, kind)
        if key in self._edge_keys:
            return False
        self._edge_keys.add(key)

        self.adjacency[a].append(NavEdge(from_id=a, to_id=b, weight=weight, kind=kind))
        self.adjacency[b].append(NavEdge(from_id=b, to_id=a, weight=weight, kind=kind))
        return True

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def node(self, node_id: str) -> NavNode:
        return self.nodes[node_id]

    def edges_from(self, node_id: str) -> list[NavEdge]:
        return self.adjacency.get(node_id, [])

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        """Number of undirected edges."""
        return len(self._edge_keys)

    def edge_set(self, precision: int = 9) -> set[tuple[str, str, str, float]]:
        """Directed edges as comparable tuples with rounded weights."""
        return {
            (edge.from_id, edge.to_id, edge.kind.value, round(edge.weight, precision))
            for edges in self.adjacency.values()
            for edge in edges
        }

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe representation listing each undirected edge once."""
        nodes = [
            {
                "id": n.id,
                "kind": n.kind.value,
                "point": {"x": n.point[0], "y": n.point[1]},
                "level_id": n.level_id,
                "original_unit_id": n.original_unit_id,
                "unit_type": n.unit_type.value if n.unit_type else None,
            }
            for n in self.nodes.values()
        ]
        edges = [
            {"from": e.from_id, "to": e.to_id, "weight": e.weight, "kind": e.kind.value}
            for node_edges in self.adjacency.values()
            for e in node_edges
            if e.from_id < e.to_id
        ]
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "nodes": nodes,
            "edges": edges,
        }


def is_traversable(unit: Unit, respect_accessible_flag: bool = True) -> bool:
    """RESTRICTED units never route; `accessible=False` opts a unit out."""
    if unit.type is UnitType.RESTRICTED:
        return False
    if respect_accessible_flag and unit.accessible is False:
        return False
    return True


def _traversable_units(campus: CampusData, config: RoutingConfig) -> list[Unit]:
    units: list[Unit] = []
    seen: set[str] = set()
    for unit in campus.units:
        if not is_traversable(unit, config.respect_accessible_flag):
            continue
        if unit.id in seen:
            logger.warning("Skipping duplicate unit id %s", unit.id)
            continue
        if not unit.polygon:
            logger.warning("Skipping unit %s with empty polygon", unit.id)
            continue
        seen.add(unit.id)
        units.append(unit)
    return units


def _padded_bounds(coords: list[XY], pad: float):
    xs = [p[0] for p in coords]
    ys = [p[1] for p in coords]
    return box(min(xs) - pad, min(ys) - pad, max(xs) + pad, max(ys) + pad)


def _candidate_pairs(coords: list[list[XY]], epsilon: float) -> list[tuple[int, int]]:
    """Index pairs whose padded bounding boxes touch.

    Two polygons that share an edge always have touching bounding boxes, so
    this only prunes pairs `shared_edge` would reject anyway.
    """
    if len(coords) < 2:
        return []
    boxes = [_padded_bounds(c, epsilon) for c in coords]
    tree = STRtree(boxes)
    pairs: set[tuple[int, int]] = set()
    for i, geom in enumerate(boxes):
        for j in tree.query(geom):
            j = int(j)
            if j > i:
                pairs.add((i, j))
    return sorted(pairs)


def _link_same_level(
    graph: NavigationGraph,
    units: list[Unit],
    centers: dict[str, XY],
    config: RoutingConfig,
) -> int:
    """Connect adjacent units on one level; returns number of waypoints added."""
    coords = [u.coords() for u in units]
    added_waypoints = 0

    for i, j in _candidate_pairs(coords, config.epsilon):
        unit_a, unit_b = units[i], units[j]
        segment = shared_edge(coords[i], coords[j], config.epsilon)
        if segment is None:
            continue

        center_a = centers[unit_a.id]
        center_b = centers[unit_b.id]
        a_transit = unit_role(unit_a.type) is UnitRole.TRANSIT
        b_transit = unit_role(unit_b.type) is UnitRole.TRANSIT

        if a_transit and b_transit:
            weight = distance(center_a, center_b, config.distance_mode, config.epsilon)
            graph.add_edge(unit_a.id, unit_b.id, weight, EdgeKind.HORIZONTAL)
            continue

        # Rooms are entered through a doorway node on the shared boundary.
        door_point = segment_midpoint(segment)
        door_id = waypoint_id(unit_a.id, unit_b.id)
        if a_transit:
            owner = unit_b.id
        elif b_transit:
            owner = unit_a.id
        else:
            owner = min(unit_a.id, unit_b.id)

        inserted = graph.add_node(
            NavNode(
                id=door_id,
                kind=NodeKind.WAYPOINT,
                point=door_point,
                level_id=unit_a.level_id,
                original_unit_id=owner,
            )
        )
        if inserted:
            added_waypoints += 1

        graph.add_edge(
            unit_a.id,
            door_id,
            distance(center_a, door_point, config.distance_mode, config.epsilon),
            EdgeKind.HORIZONTAL,
        )
        graph.add_edge(
            door_id,
            unit_b.id,
            distance(door_point, center_b, config.distance_mode, config.epsilon),
            EdgeKind.HORIZONTAL,
        )

    return added_waypoints


def _link_vertical_connectors(
    graph: NavigationGraph,
    campus: CampusData,
    units: list[Unit],
    centers: dict[str, XY],
    config: RoutingConfig,
) -> int:
    """Chain stair/elevator units sharing a connector id floor by floor."""
    z_by_level = {level.id: float(level.z_index) for level in campus.levels}
    groups: dict[str, list[Unit]] = {}
    for unit in units:
        if unit.type in VERTICAL_CONNECTOR_TYPES and unit.vertical_connector_id:
            groups.setdefault(unit.vertical_connector_id, []).append(unit)

    added = 0
    for connector_id in sorted(groups):
        by_level: dict[str, list[Unit]] = {}
        for unit in sorted(groups[connector_id], key=lambda u: u.id):
            by_level.setdefault(unit.level_id, []).append(unit)
        floors = sorted(by_level, key=lambda level_id: (z_by_level.get(level_id, 0.0), level_id))

        # Every cell of a floor links to every cell of the next floor up.
        for lower_level, upper_level in zip(floors, floors[1:]):
            for lower in by_level[lower_level]:
                for upper in by_level[upper_level]:
                    weight = (
                        distance(centers[lower.id], centers[upper.id], config.distance_mode, config.epsilon)
                        + config.vertical_penalty
                    )
                    if graph.add_edge(lower.id, upper.id, weight, EdgeKind.VERTICAL):
                        added += 1
    return added


def _repair_isolated_units(
    graph: NavigationGraph,
    units_by_level: dict[str, list[Unit]],
    centers: dict[str, XY],
    config: RoutingConfig,
) -> list[str]:
    """Link edge-less units to their nearest same-level neighbour within range."""
    isolated = [u for level_units in units_by_level.values() for u in level_units if not graph.edges_from(u.id)]
    repaired: list[str] = []

    for unit in isolated:
        best_id: str | None = None
        best_dist = math.inf
        for candidate in units_by_level[unit.level_id]:
            if candidate.id == unit.id:
                continue
            d = distance(centers[unit.id], centers[candidate.id], config.distance_mode, config.epsilon)
            if d < best_dist:
                best_dist = d
                best_id = candidate.id

        if best_id is None:
            continue
        if best_dist >= config.repair_max_distance:
            logger.info(
                "Unit %s left isolated: nearest neighbour %s is %.3f away (limit %.3f)",
                unit.id,
                best_id,
                best_dist,
                config.repair_max_distance,
            )
            continue
        graph.add_edge(unit.id, best_id, best_dist, EdgeKind.HORIZONTAL)
        repaired.append(unit.id)

    return repaired


def build_navigation_graph(campus: CampusData, config: RoutingConfig | None = None) -> NavigationGraph:
    """Build the routable navigation graph for a campus dataset.

    Args:
        campus: Units, levels and details from the data provider.
        config: Tolerance, distance mode and weighting parameters.

    Returns:
        NavigationGraph with one center node per traversable unit, doorway
        waypoints between rooms and their neighbours, and vertical edges
        between consecutive floors of each connector.
    """
    config = config or RoutingConfig()
    graph = NavigationGraph()

    units = _traversable_units(campus, config)
    centers: dict[str, XY] = {}
    units_by_level: dict[str, list[Unit]] = {}

    for unit in units:
        center = centroid(unit.coords())
        centers[unit.id] = center
        graph.add_node(
            NavNode(
                id=unit.id,
                kind=NodeKind.CENTER,
                point=center,
                level_id=unit.level_id,
                original_unit_id=unit.id,
                unit_type=unit.type,
            )
        )
        units_by_level.setdefault(unit.level_id, []).append(unit)

    waypoints = 0
    for level_units in units_by_level.values():
        waypoints += _link_same_level(graph, level_units, centers, config)

    vertical = _link_vertical_connectors(graph, campus, units, centers, config)

    repaired: list[str] = []
    if config.repair_isolated:
        repaired = _repair_isolated_units(graph, units_by_level, centers, config)
        if repaired:
            logger.warning("Connected %d isolated units by proximity: %s", len(repaired), ", ".join(repaired))

    logger.info(
        "Built navigation graph: %d nodes (%d waypoints), %d edges (%d vertical) from %d traversable units",
        graph.node_count,
        waypoints,
        graph.edge_count,
        vertical,
        len(units),
    )
    return graph
