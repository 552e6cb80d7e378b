"""Great-circle geometry and location stabilization."""

from __future__ import annotations

import math
from typing import NamedTuple

EARTH_RADIUS_KM = 6371.0


class StabilizedLocation(NamedTuple):
    """Reference location rounded to a coarse grid."""

    lat: float
    lon: float

    @property
    def key(self) -> str:
        return f"{self.lat},{self.lon}"


class BoundingBox(NamedTuple):
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two coordinates on a spherical earth."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push the term just outside the asin domain near antipodes
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing from the first point to the second, 0-360."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)
    x = math.sin(d_lambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0


def stabilize(lat: float, lon: float, precision: int = 2) -> StabilizedLocation:
    """Round a location so GPS jitter maps onto the same polling key.

    Two decimal places is roughly a one kilometer grid.
    """

    return StabilizedLocation(round(lat, precision), round(lon, precision))


def bounding_box(lat: float, lon: float, radius_nm: float) -> BoundingBox:
    lat_delta = radius_nm / 60.0
    lon_delta = radius_nm / max(60.0 * math.cos(math.radians(lat)), 0.0001)
    return BoundingBox(
        min_lat=lat - lat_delta,
        min_lon=lon - lon_delta,
        max_lat=lat + lat_delta,
        max_lon=lon + lon_delta,
    )


__all__ = [
    "EARTH_RADIUS_KM",
    "BoundingBox",
    "StabilizedLocation",
    "bearing_deg",
    "bounding_box",
    "distance_km",
    "stabilize",
]
