"""Polygon geometry helpers for adjacency detection and distance metrics.

Purpose:
- Compute unit centroids and shared boundary segments between unit polygons.
- Measure distances in planar units or haversine meters.

Every tolerance-sensitive function takes an explicit `epsilon` in coordinate
units: geographic degrees need ~1e-6, planar/meter datasets ~1e-9.

Usage example:
    >>> square = [(0, 0), (1, 0), (1, 1), (0, 1)]
    >>> shared_edge(square, [(1, 0), (2, 0), (2, 1), (1, 1)], epsilon=1e-9)
    ((1, 0), (1, 1))
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Sequence

import numpy as np

XY = tuple[float, float]
Segment = tuple[XY, XY]

EARTH_RADIUS_M = 6_371_000.0


class DistanceMode(str, Enum):
    """Distance metric matching the dataset coordinate system."""

    PLANAR = "planar"
    GEODESIC = "geodesic"


def centroid(polygon: Sequence[XY]) -> XY:
    """Arithmetic mean of polygon vertices; `(0.0, 0.0)` for an empty polygon."""
    if len(polygon) == 0:
        return 0.0, 0.0
    mean = np.asarray(polygon, dtype=float).reshape(-1, 2).mean(axis=0)
    return float(mean[0]), float(mean[1])


def euclidean_distance(p1: XY, p2: XY) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def haversine_distance(p1: XY, p2: XY) -> float:
    """Great-circle distance in meters between `(lon, lat)` points."""
    phi1 = math.radians(p1[1])
    phi2 = math.radians(p2[1])
    d_phi = math.radians(p2[1] - p1[1])
    d_lambda = math.radians(p2[0] - p1[0])

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance(p1: XY, p2: XY, mode: DistanceMode, epsilon: float) -> float:
    """Distance under `mode`, snapped to exactly 0 for near-coincident points."""
    if euclidean_distance(p1, p2) < epsilon:
        return 0.0
    if mode is DistanceMode.GEODESIC:
        return haversine_distance(p1, p2)
    return euclidean_distance(p1, p2)


def is_point_on_segment(p: XY, a: XY, b: XY, epsilon: float) -> bool:
    """Return True when `p` lies on segment `ab` within `epsilon`."""
    abx, aby = b[0] - a[0], b[1] - a[1]
    apx, apy = p[0] - a[0], p[1] - a[1]
    length = math.hypot(abx, aby)
    if length < epsilon:
        return math.hypot(apx, apy) < epsilon

    # Perpendicular distance from p to the carrier line.
    cross = apy * abx - apx * aby
    if abs(cross) / length > epsilon:
        return False

    dot = apx * abx + apy * aby
    if dot < -epsilon * length:
        return False
    if dot > length * length + epsilon * length:
        return False
    return True


def are_collinear(p1: XY, p2: XY, p3: XY, epsilon: float) -> bool:
    """Collinearity test with an epsilon scaled by the spanned distances."""
    cross = (p2[1] - p1[1]) * (p3[0] - p2[0]) - (p2[0] - p1[0]) * (p3[1] - p2[1])
    scale = math.hypot(p2[0] - p1[0], p2[1] - p1[1]) + math.hypot(p3[0] - p2[0], p3[1] - p2[1])
    return abs(cross) < epsilon * scale


def _dedupe_points(points: list[XY], epsilon: float) -> list[XY]:
    unique: list[XY] = []
    for p in points:
        if any(euclidean_distance(p, q) < epsilon for q in unique):
            continue
        unique.append(p)
    return unique


def _overlap(p1: XY, p2: XY, q1: XY, q2: XY, epsilon: float) -> Segment | None:
    """Longest chord shared by two collinear segments, if longer than epsilon."""
    candidates: list[XY] = []
    if is_point_on_segment(p1, q1, q2, epsilon):
        candidates.append(p1)
    if is_point_on_segment(p2, q1, q2, epsilon):
        candidates.append(p2)
    if is_point_on_segment(q1, p1, p2, epsilon):
        candidates.append(q1)
    if is_point_on_segment(q2, p1, p2, epsilon):
        candidates.append(q2)

    unique = _dedupe_points(candidates, epsilon)
    if len(unique) < 2:
        return None

    best: Segment | None = None
    best_len = -1.0
    for i in range(len(unique)):
        for j in range(i + 1, len(unique)):
            d = euclidean_distance(unique[i], unique[j])
            if d > best_len:
                best_len = d
                best = (unique[i], unique[j])

    if best is None or best_len <= epsilon:
        return None
    return best


def shared_edge(poly_a: Sequence[XY], poly_b: Sequence[XY], epsilon: float) -> Segment | None:
    """Find a boundary segment of non-zero length shared by two polygons.

    Winding order is not assumed. Polygons touching at a single vertex do not
    share an edge.

    Args:
        poly_a: First polygon ring without closing duplicate.
        poly_b: Second polygon ring without closing duplicate.
        epsilon: Coordinate tolerance.

    Returns:
        `(start, end)` of the shared segment, or None.
    """
    n_a = len(poly_a)
    n_b = len(poly_b)
    if n_a < 2 or n_b < 2:
        return None

    for i in range(n_a):
        p1 = poly_a[i]
        p2 = poly_a[(i + 1) % n_a]
        if euclidean_distance(p1, p2) < epsilon:
            continue

        for j in range(n_b):
            q1 = poly_b[j]
            q2 = poly_b[(j + 1) % n_b]
            if euclidean_distance(q1, q2) < epsilon:
                continue

            # Adjacent GIS rings usually traverse their common edge in opposite directions.
            if euclidean_distance(p1, q2) < epsilon and euclidean_distance(p2, q1) < epsilon:
                return p1, p2

            if are_collinear(p1, p2, q1, epsilon) and are_collinear(p1, p2, q2, epsilon):
                segment = _overlap(p1, p2, q1, q2, epsilon)
                if segment is not None:
                    return segment

    return None


def segment_midpoint(segment: Segment) -> XY:
    (x1, y1), (x2, y2) = segment
    return (x1 + x2) / 2.0, (y1 + y2) / 2.0
