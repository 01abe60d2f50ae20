import pytest

from lumiplan.geo.geometry import distance_m, interpolate, node_key, path_length_m
from lumiplan.schema.models import Coordinate


def test_distance_along_meridian(at):
    assert distance_m(at(0), at(100)) == pytest.approx(100.0, rel=1e-9)


def test_distance_accepts_pairs(at):
    a, b = at(0), at(250)
    assert distance_m((a.lat, a.lng), (b.lat, b.lng)) == pytest.approx(distance_m(a, b))


def test_path_length_sums_legs(at):
    assert path_length_m([at(0), at(100), at(100, 50)]) == pytest.approx(150.0, rel=1e-3)
    assert path_length_m([at(0)]) == 0.0


def test_interpolate_walks_the_segment(at):
    a, b = at(0), at(100)
    lat, lng = interpolate(a, b, 0.3)
    assert distance_m(a, (lat, lng)) == pytest.approx(30.0, rel=1e-6)
    assert distance_m((lat, lng), b) == pytest.approx(70.0, rel=1e-6)
    assert interpolate(a, b, 0.0) == pytest.approx((a.lat, a.lng))
    assert interpolate(a, b, 1.0) == pytest.approx((b.lat, b.lng))


def test_interpolate_coincident_points(at):
    a = at(10)
    assert interpolate(a, a, 0.5) == (a.lat, a.lng)


def test_node_key_uses_six_decimals():
    assert node_key(Coordinate(lat=1.0000001, lng=2.0)) == node_key(Coordinate(lat=1.0, lng=2.0000002))
    assert node_key(Coordinate(lat=1.000001, lng=2.0)) != node_key(Coordinate(lat=1.0, lng=2.0))
