import math

import pytest

from trainerhub.core.geo import GeoPoint, distance_km, haversine_km, round_km

BERLIN = GeoPoint(52.5200, 13.4050)
MUNICH = GeoPoint(48.1351, 11.5820)


def test_identical_points_are_zero_km_apart():
    assert haversine_km(BERLIN, BERLIN) == 0.0


def test_distance_is_symmetric():
    points = [BERLIN, MUNICH, GeoPoint(-33.8688, 151.2093), GeoPoint(40.7128, -74.0060), GeoPoint(0.0, 0.0)]
    for a in points:
        for b in points:
            assert haversine_km(a, b) == haversine_km(b, a)


def test_berlin_munich_is_about_504_km():
    assert haversine_km(BERLIN, MUNICH) == pytest.approx(504.0, abs=2.0)


def test_result_is_rounded_to_one_decimal():
    d = distance_km(52.5200, 13.4050, 52.5200, 13.9050)
    assert d == round(d, 1)
    assert d == pytest.approx(33.8, abs=0.3)


def test_antipodal_points_do_not_fail():
    assert distance_km(0.0, 0.0, 0.0, 180.0) == round(math.pi * 6371, 1)


def test_half_tenths_round_up():
    assert round_km(0.25) == 0.3
    assert round_km(1.25) == 1.3
    assert round_km(33.749) == 33.7
    assert round_km(0.0) == 0.0
