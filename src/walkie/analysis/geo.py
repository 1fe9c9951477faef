"""
GeoPoint and great-circle distance.

Distances use the haversine formula on a spherical earth (R = 6371 km).
No antimeridian or pole special-casing; coordinates are taken as-is, out of
range values included.
"""
import math
from dataclasses import dataclass
from typing import List, Sequence

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """One recorded position, in decimal degrees."""

    lat: float
    lng: float


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance between two points in kilometers.

    h is clamped to [0, 1] before the square root so rounding noise near
    antipodal or identical points cannot produce a math domain error.
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lng - a.lng)
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def path_length_km(points: Sequence[GeoPoint]) -> float:
    """Sum of haversine distances between consecutive points."""
    return sum(haversine_km(a, b) for a, b in zip(points, points[1:]))


def points_to_latlngs(points: Sequence[GeoPoint]) -> List[List[float]]:
    """[[lat, lng], ...], the polyline shape map widgets consume."""
    return [[p.lat, p.lng] for p in points]
