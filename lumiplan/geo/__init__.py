"""Spherical geometry helpers shared by every planning stage."""
from .geometry import (
    EARTH_RADIUS_M,
    distance_m,
    interpolate,
    node_key,
    path_length_m,
)

__all__ = [
    "EARTH_RADIUS_M",
    "distance_m",
    "interpolate",
    "node_key",
    "path_length_m",
]
