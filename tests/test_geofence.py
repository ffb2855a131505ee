import math

import pytest

from schemas.attendance import AttendanceStatus, Coordinate
from services.geofence import EARTH_RADIUS_METERS, evaluate_geofence, haversine_distance_m
from utils.exceptions import ValidationError
from tests.fakes import NORTH_OF_RIYADH, RIYADH


def test_same_point_is_present_at_zero_distance():
    assert haversine_distance_m(RIYADH, RIYADH) == 0
    assert evaluate_geofence(RIYADH, RIYADH, 500) == AttendanceStatus.PRESENT


def test_point_ten_km_north_is_out_of_bounds():
    distance = haversine_distance_m(RIYADH, NORTH_OF_RIYADH)
    expected = EARTH_RADIUS_METERS * math.radians(NORTH_OF_RIYADH.lat - RIYADH.lat)

    assert distance == pytest.approx(expected, rel=1e-6)
    assert 9500 < distance < 9700
    assert evaluate_geofence(RIYADH, NORTH_OF_RIYADH, 500) == AttendanceStatus.OUT_OF_BOUNDS


def test_distance_is_symmetric():
    a = Coordinate(lat=21.4858, lng=39.1925)
    b = Coordinate(lat=26.4207, lng=50.0888)
    assert haversine_distance_m(a, b) == pytest.approx(haversine_distance_m(b, a))


def test_boundary_is_inclusive():
    distance = haversine_distance_m(RIYADH, NORTH_OF_RIYADH)
    assert evaluate_geofence(RIYADH, NORTH_OF_RIYADH, distance) == AttendanceStatus.PRESENT
    assert evaluate_geofence(RIYADH, NORTH_OF_RIYADH, distance - 1) == AttendanceStatus.OUT_OF_BOUNDS


def test_growing_radius_never_turns_present_into_out_of_bounds():
    statuses = [evaluate_geofence(RIYADH, NORTH_OF_RIYADH, r) for r in (0, 100, 9000, 9700, 20000)]
    first_present = statuses.index(AttendanceStatus.PRESENT)
    assert all(s == AttendanceStatus.PRESENT for s in statuses[first_present:])
    assert statuses[:first_present] == [AttendanceStatus.OUT_OF_BOUNDS] * first_present


def test_no_assigned_site_is_always_present():
    far_away = Coordinate(lat=-33.8688, lng=151.2093)
    assert evaluate_geofence(None, far_away, 500) == AttendanceStatus.PRESENT


def test_evaluation_is_deterministic():
    results = {evaluate_geofence(RIYADH, NORTH_OF_RIYADH, 500) for _ in range(5)}
    assert results == {AttendanceStatus.OUT_OF_BOUNDS}


@pytest.mark.parametrize("bad", [
    Coordinate(lat=91.0, lng=0.0),
    Coordinate(lat=0.0, lng=-180.5),
    Coordinate(lat=float("nan"), lng=46.0),
    Coordinate(lat=24.0, lng=float("inf")),
])
def test_invalid_coordinates_are_rejected(bad):
    with pytest.raises(ValidationError):
        haversine_distance_m(RIYADH, bad)
    with pytest.raises(ValidationError):
        evaluate_geofence(RIYADH, bad, 500)
    with pytest.raises(ValidationError):
        evaluate_geofence(None, bad, 500)
    with pytest.raises(ValidationError):
        evaluate_geofence(bad, RIYADH, 500)


def test_negative_radius_is_rejected():
    with pytest.raises(ValidationError):
        evaluate_geofence(RIYADH, RIYADH, -1)
