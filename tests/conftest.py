import math

import pytest

from lumiplan.geo.geometry import EARTH_RADIUS_M
from lumiplan.schema.models import Coordinate, Light, Road

ORIGIN = Coordinate(lat=-34.6, lng=-58.4)


def _at(north_m: float, east_m: float = 0.0) -> Coordinate:
    lat = ORIGIN.lat + math.degrees(north_m / EARTH_RADIUS_M)
    lng = ORIGIN.lng + math.degrees(east_m / (EARTH_RADIUS_M * math.cos(math.radians(ORIGIN.lat))))
    return Coordinate(lat=lat, lng=lng)


@pytest.fixture
def at():
    """Coordinate ``north_m``/``east_m`` metres away from a fixed origin."""

    return _at


@pytest.fixture
def star_roads():
    # three 100 m spokes meeting at the origin
    return [
        Road(id="north", name="North", path=(_at(0), _at(100))),
        Road(id="east", name="East", path=(_at(0), _at(0, 100))),
        Road(id="south", name="South", path=(_at(0), _at(-100))),
    ]


@pytest.fixture
def star_lights():
    return [
        Light(id="n", road_id="north", position=_at(100), power_w=500.0),
        Light(id="e", road_id="east", position=_at(0, 100), power_w=300.0),
        Light(id="s", road_id="south", position=_at(-100), power_w=200.0),
    ]
