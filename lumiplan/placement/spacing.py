"""Place lights along road centrelines at a fixed interval."""
from __future__ import annotations

from typing import Iterable, List, Optional

from lumiplan.geo.geometry import distance_m, interpolate, path_length_m
from lumiplan.schema.models import Coordinate, Light, PoleType, Road

MIN_ROAD_LENGTH_M = 5.0
# slightly under half the spacing so intersections re-sampled by two roads keep one light
CLEARANCE_DIVISOR = 2.1


def _point_at(path, offset_m: float) -> Optional[Coordinate]:
    traveled = 0.0
    for i in range(len(path) - 1):
        a, b = path[i], path[i + 1]
        seg = distance_m(a, b)
        if traveled + seg >= offset_m:
            fraction = (offset_m - traveled) / seg if seg > 0 else 0.0
            lat, lng = interpolate(a, b, fraction)
            return Coordinate(lat=lat, lng=lng)
        traveled += seg
    return None


def generate_lights(
    roads: Iterable[Road],
    spacing_m: float,
    power_w: float,
    pole_type: PoleType = PoleType.CONCRETE_7M,
    min_road_length_m: float = MIN_ROAD_LENGTH_M,
) -> List[Light]:
    """Step along every road at ``spacing_m``, then cap each road's end."""

    lights: List[Light] = []
    clearance = spacing_m / CLEARANCE_DIVISOR
    counter = 0

    def place(position: Coordinate, road_id: str) -> bool:
        nonlocal counter
        if any(distance_m(position, light.position) < clearance for light in lights):
            return False
        lights.append(
            Light(
                id=f"lum-{road_id}-{counter}",
                road_id=road_id,
                position=position,
                power_w=power_w,
                pole_type=pole_type,
            )
        )
        counter += 1
        return True

    for road in roads:
        if len(road.path) < 2:
            continue
        total = path_length_m(road.path)
        if total < min_road_length_m:
            continue

        last: Optional[Coordinate] = None
        offset = 0.0
        while offset < total:
            position = _point_at(road.path, offset)
            if position is not None and place(position, road.id):
                last = position
            offset += spacing_m

        if last is not None:
            end = road.path[-1]
            if distance_m(last, end) > spacing_m / 2:
                place(Coordinate(lat=end.lat, lng=end.lng), road.id)
        else:
            start = road.path[0]
            place(Coordinate(lat=start.lat, lng=start.lng), road.id)

    return lights


__all__ = ["MIN_ROAD_LENGTH_M", "generate_lights"]
