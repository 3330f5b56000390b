import math
from typing import Optional

from roamly.models.entities import GeoAnchor

EARTH_RADIUS_KM = 6371.0

# Origin and destination closer than this are treated as the same metro.
SAME_PLACE_THRESHOLD_KM = 45.0

# Hard radius every stop of a single-destination trip must respect.
DESTINATION_RADIUS_KM = 55.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in kilometers between two (lat, lng) points.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def anchor_distance_km(a: GeoAnchor, b: GeoAnchor) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def same_place_text(origin: str, destination: str) -> bool:
    return (origin or "").strip().lower() == (destination or "").strip().lower()


def is_single_destination(
    origin: str,
    destination: str,
    origin_anchor: Optional[GeoAnchor],
    destination_anchor: Optional[GeoAnchor],
) -> bool:
    """
    Decide whether a trip is centered on one place or runs from origin to destination.

    Same text (ignoring case) is always single-destination, so the answer never
    depends on geocoding for that case. Otherwise both anchors must resolve and
    sit within SAME_PLACE_THRESHOLD_KM of each other.
    """
    if same_place_text(origin, destination):
        return True
    if origin_anchor is None or destination_anchor is None:
        return False
    return anchor_distance_km(origin_anchor, destination_anchor) <= SAME_PLACE_THRESHOLD_KM


def is_finite_coordinate(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
