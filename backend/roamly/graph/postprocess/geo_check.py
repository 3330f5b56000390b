import logging
from typing import Any, Dict, List

from roamly.graph.utils import haversine_km, is_finite_coordinate
from roamly.models.entities import GeoAnchor, GeoOutlier

logger = logging.getLogger(__name__)


def find_geo_outliers(itinerary: List[Dict[str, Any]], anchor: GeoAnchor, radius_km: float) -> List[GeoOutlier]:
    """
    Return every stop that lies farther than ``radius_km`` from ``anchor``.

    Stops without finite coordinates cannot be checked and are skipped.
    """
    outliers: List[GeoOutlier] = []
    for position, day in enumerate(itinerary or [], start=1):
        if not isinstance(day, dict):
            continue
        day_number = day.get("day") if isinstance(day.get("day"), int) else position
        for stop in day.get("stops") or []:
            if not isinstance(stop, dict):
                continue
            lat, lng = stop.get("lat"), stop.get("lng")
            if not (is_finite_coordinate(lat) and is_finite_coordinate(lng)):
                logger.debug("Skipping unverifiable stop %r on day %s", stop.get("name"), day_number)
                continue
            distance = haversine_km(anchor.lat, anchor.lng, lat, lng)
            if distance > radius_km:
                outliers.append(GeoOutlier(day=day_number, name=str(stop.get("name") or "Unnamed stop"), distance_km=distance))
    return outliers


def filter_within_radius(items: List[Dict[str, Any]], anchor: GeoAnchor, radius_km: float) -> List[Dict[str, Any]]:
    """Keep the items whose coordinates are known and within ``radius_km`` of ``anchor``."""
    kept = []
    for item in items:
        lat, lng = item.get("lat"), item.get("lng")
        if not (is_finite_coordinate(lat) and is_finite_coordinate(lng)):
            continue
        if haversine_km(anchor.lat, anchor.lng, lat, lng) <= radius_km:
            kept.append(item)
    return kept
