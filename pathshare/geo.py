"""Great-circle distance helpers.

Latitudes must lie in [-90, 90] and longitudes in [-180, 180]; values outside
those ranges are not checked and give meaningless distances.
"""

from __future__ import annotations

import math
from typing import Sequence

from .models import LatLon

EARTH_RADIUS_M = 6_371_000.0


def distance_meters(a: LatLon, b: LatLon) -> float:
    """Haversine distance in metres between two ``(lat, lon)`` points."""

    if a == b:
        return 0.0
    lat1, lon1 = a
    lat2, lon2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)

    s = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    )
    # Rounding can push s a hair past 1.0 for antipodal points.
    s = min(1.0, max(0.0, s))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(s))


def path_length_meters(coordinates: Sequence[LatLon]) -> float:
    total = 0.0
    for i in range(1, len(coordinates)):
        total += distance_meters(coordinates[i - 1], coordinates[i])
    return total
