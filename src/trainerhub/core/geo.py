from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, floor, radians, sin, sqrt

"""
Geospatial helpers.

Distances are great-circle (Haversine) distances in kilometers, rounded to one
decimal place so API responses and radius comparisons agree on the same number.
"""

EARTH_RADIUS_KM = 6371.0


def round_km(value: float) -> float:
    """Round half-up to one decimal (`round()` would round 0.25 down to 0.2)."""
    return floor(value * 10 + 0.5) / 10


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in kilometers (1 decimal) between two points."""
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = radians(b.lat - a.lat)
    dlon = radians(b.lon - a.lon)

    # Clamp: float error can push h past 1 for near-antipodal points.
    h = min(1.0, sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2)
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return round_km(EARTH_RADIUS_KM * c)


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return haversine_km(GeoPoint(lat1, lon1), GeoPoint(lat2, lon2))
