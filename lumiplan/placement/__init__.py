"""Light spacing along roads and panel clustering/anchoring."""
from .clustering import (
    centroid,
    choose_anchor,
    kmeans,
    recommend_panel_count,
    vertex_degrees,
)
from .spacing import generate_lights

__all__ = [
    "centroid",
    "choose_anchor",
    "generate_lights",
    "kmeans",
    "recommend_panel_count",
    "vertex_degrees",
]
