"""Group lights into panels with k-means and pick a mounting point per group."""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from lumiplan.geo.geometry import distance_m, node_key
from lumiplan.schema.models import Coordinate, Light, Road

KMEANS_MAX_ITERATIONS = 50
MAX_LIGHTS_PER_PANEL = 100
MAX_POWER_PER_PANEL_W = 15000.0


def kmeans(points: Sequence[Coordinate], k: int, max_iterations: int = KMEANS_MAX_ITERATIONS) -> List[int]:
    """Cluster index per point.

    Seeded with the first ``k`` points so identical input order gives identical
    clusters. Stops when no assignment changes or after ``max_iterations``.
    """

    if not points or k <= 0:
        return []

    centroids: List[Tuple[float, float]] = [(p.lat, p.lng) for p in points[:k]]
    assignments = [0] * len(points)
    changed = True
    iterations = 0
    while changed and iterations < max_iterations:
        changed = False
        for i, point in enumerate(points):
            best = (float("inf"), 0)
            for j, center in enumerate(centroids):
                d = distance_m(point, center)
                if d < best[0]:
                    best = (d, j)
            if assignments[i] != best[1]:
                assignments[i] = best[1]
                changed = True

        sums = [[0.0, 0.0, 0] for _ in range(len(centroids))]
        for i, point in enumerate(points):
            acc = sums[assignments[i]]
            acc[0] += point.lat
            acc[1] += point.lng
            acc[2] += 1
        for j, (lat_sum, lng_sum, count) in enumerate(sums):
            if count:
                centroids[j] = (lat_sum / count, lng_sum / count)
        iterations += 1
    return assignments


def centroid(points: Sequence[Coordinate]) -> Coordinate:
    n = len(points)
    return Coordinate(lat=sum(p.lat for p in points) / n, lng=sum(p.lng for p in points) / n)


def vertex_degrees(roads: Iterable[Road]) -> Dict[Tuple[int, int], Tuple[Coordinate, int]]:
    """Degree proxy per road vertex: how many polyline segments end there."""

    degrees: Dict[Tuple[int, int], Tuple[Coordinate, int]] = {}
    for road in roads:
        for point in road.path:
            degrees.setdefault(node_key(point), (point, 0))
        for i in range(len(road.path) - 1):
            for point in (road.path[i], road.path[i + 1]):
                key = node_key(point)
                coord, degree = degrees[key]
                degrees[key] = (coord, degree + 1)
    return degrees


def _closest(center: Coordinate, candidates: Iterable[Coordinate]) -> Optional[Coordinate]:
    best: Tuple[float, Optional[Coordinate]] = (float("inf"), None)
    for point in candidates:
        d = distance_m(center, point)
        if d < best[0]:
            best = (d, point)
    return best[1]


def choose_anchor(center: Coordinate, roads: Sequence[Road]) -> Optional[Coordinate]:
    """Nearest T-junction, else nearest other intersection, else nearest vertex."""

    degrees = vertex_degrees(roads)
    t_junctions = [coord for coord, degree in degrees.values() if degree == 3]
    intersections = [coord for coord, degree in degrees.values() if degree > 1 and degree != 3]

    anchor = _closest(center, t_junctions)
    if anchor is None:
        anchor = _closest(center, intersections)
    if anchor is None:
        anchor = _closest(center, (point for road in roads for point in road.path))
    return anchor


def recommend_panel_count(
    lights: Sequence[Light],
    max_lights: int = MAX_LIGHTS_PER_PANEL,
    max_power_w: float = MAX_POWER_PER_PANEL_W,
) -> int:
    total_power = sum(light.power_w for light in lights)
    return max(1, math.ceil(len(lights) / max_lights), math.ceil(total_power / max_power_w))


__all__ = [
    "KMEANS_MAX_ITERATIONS",
    "centroid",
    "choose_anchor",
    "kmeans",
    "recommend_panel_count",
    "vertex_degrees",
]
