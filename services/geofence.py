import math
from typing import Optional

from schemas.attendance import AttendanceStatus, Coordinate
from utils.exceptions import ValidationError

EARTH_RADIUS_METERS = 6_371_000


def _check(coord: Coordinate, label: str) -> None:
    if not coord.is_valid():
        raise ValidationError(f"Invalid {label} coordinate: ({coord.lat}, {coord.lng})")


def haversine_distance_m(a: Coordinate, b: Coordinate) -> float:
    """Calculate distance in meters between two GPS coordinates using Haversine formula"""
    _check(a, "first")
    _check(b, "second")

    lat1_rad = math.radians(a.lat)
    lat2_rad = math.radians(b.lat)
    delta_lat = math.radians(b.lat - a.lat)
    delta_lon = math.radians(b.lng - a.lng)

    h = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) *
         math.sin(delta_lon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_METERS * c


def evaluate_geofence(
    site: Optional[Coordinate],
    captured: Coordinate,
    radius_m: float,
) -> AttendanceStatus:
    """
    Decide PRESENT vs OUT_OF_BOUNDS for a captured position.

    Policy: a worker without an assigned site has no geofence, so every
    capture is PRESENT. The captured coordinate is still validated.
    The boundary is inclusive (distance == radius is PRESENT).
    """
    _check(captured, "captured")
    if not math.isfinite(radius_m) or radius_m < 0:
        raise ValidationError(f"Invalid geofence radius: {radius_m}")

    if site is None:
        return AttendanceStatus.PRESENT

    _check(site, "site")
    distance = haversine_distance_m(site, captured)
    return AttendanceStatus.PRESENT if distance <= radius_m else AttendanceStatus.OUT_OF_BOUNDS
