"""Great-circle distance, path length and interpolation on lat/lng pairs."""
from __future__ import annotations

import math
from typing import Sequence, Tuple

EARTH_RADIUS_M = 6378137.0
NODE_KEY_SCALE = 10 ** 6  # 6 decimals, about 11 cm


def _lat_lng(p) -> Tuple[float, float]:
    # Coordinate dataclasses and plain (lat, lng) pairs are both accepted
    if hasattr(p, "lat"):
        return float(p.lat), float(p.lng)
    return float(p[0]), float(p[1])


def distance_m(a, b) -> float:
    """Haversine distance in metres."""

    lat1, lng1 = _lat_lng(a)
    lat2, lng2 = _lat_lng(b)
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lng2 - lng1)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def path_length_m(points: Sequence) -> float:
    total = 0.0
    for i in range(1, len(points)):
        total += distance_m(points[i - 1], points[i])
    return total


def interpolate(a, b, fraction: float) -> Tuple[float, float]:
    """Return the (lat, lng) located ``fraction`` of the way from ``a`` to ``b``
    along the great circle joining them."""

    lat1, lng1 = _lat_lng(a)
    lat2, lng2 = _lat_lng(b)
    phi1, lmb1 = math.radians(lat1), math.radians(lng1)
    phi2, lmb2 = math.radians(lat2), math.radians(lng2)
    cos_phi1 = math.cos(phi1)
    cos_phi2 = math.cos(phi2)

    angle = distance_m(a, b) / EARTH_RADIUS_M
    sin_angle = math.sin(angle)
    if sin_angle < 1e-12:
        return lat1, lng1

    wa = math.sin((1 - fraction) * angle) / sin_angle
    wb = math.sin(fraction * angle) / sin_angle
    x = wa * cos_phi1 * math.cos(lmb1) + wb * cos_phi2 * math.cos(lmb2)
    y = wa * cos_phi1 * math.sin(lmb1) + wb * cos_phi2 * math.sin(lmb2)
    z = wa * math.sin(phi1) + wb * math.sin(phi2)
    lat = math.atan2(z, math.hypot(x, y))
    lng = math.atan2(y, x)
    return math.degrees(lat), math.degrees(lng)


def node_key(coord) -> Tuple[int, int]:
    lat, lng = _lat_lng(coord)
    return (int(round(lat * NODE_KEY_SCALE)), int(round(lng * NODE_KEY_SCALE)))


__all__ = ["EARTH_RADIUS_M", "distance_m", "path_length_m", "interpolate", "node_key"]
