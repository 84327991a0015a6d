"""Great-circle distance helpers."""
from __future__ import annotations

import math
from typing import Any

EARTH_RADIUS_KM = 6371.0

# Returned whenever either end of a distance lookup has no usable coordinates.
MISSING_DISTANCE_KM = 9999.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points, in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def km_from_start(place: Any, start: Any) -> float:
    """Distance from the trip's start city to ``place``.

    Missing or non-finite coordinates on either side yield
    ``MISSING_DISTANCE_KM`` instead of raising.
    """
    coords = getattr(place, "coordinates", None)
    plat, plng = _lat_lng(coords)
    slat, slng = _lat_lng(start)
    if plat is None or plng is None or slat is None or slng is None:
        return MISSING_DISTANCE_KM

    dist = distance_km(slat, slng, plat, plng)
    return dist if math.isfinite(dist) else MISSING_DISTANCE_KM


def _lat_lng(obj: Any) -> tuple[float | None, float | None]:
    if obj is None:
        return None, None
    return _finite(getattr(obj, "lat", None)), _finite(getattr(obj, "lng", None))


def _finite(value: Any) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
