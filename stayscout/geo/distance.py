"""
Great-circle distance and radius filtering for geo-tagged events.
"""

import math
from typing import Optional, Tuple

from stayscout.db.models import EventRecord

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """
    Haversine distance between two (lat, lon) points in kilometres.

    Example:
        >>> round(haversine_km((32.5149, -117.0382), (32.7157, -117.1611)), 1)
        25.1
    """
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def apply_radius(
    record: EventRecord,
    origin: Optional[Tuple[float, float]],
    radius_km: Optional[float],
) -> Optional[EventRecord]:
    """
    Distance filter shared by every event strategy.

    - origin and record geo known: attach distance_km (2 decimals); drop the
      record (return None) if it exceeds radius_km
    - otherwise: keep the record unchanged, without distance_km
    """
    if origin is None or not record.has_geo:
        return record

    distance = haversine_km(origin, (record.latitude, record.longitude))
    if radius_km is not None and distance > radius_km:
        return None
    return record.model_copy(update={"distance_km": round(distance, 2)})
