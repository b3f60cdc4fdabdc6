"""
Geo helpers: haversine distance and the radius filter shared by event
strategies. Partial-event enrichment lives in stayscout.geo.enricher.
"""

from stayscout.geo.distance import EARTH_RADIUS_KM, haversine_km, apply_radius

__all__ = [
    "EARTH_RADIUS_KM",
    "haversine_km",
    "apply_radius",
]
