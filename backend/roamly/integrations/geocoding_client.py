"""
Mapbox forward-geocoding adapter.

Resolves free-text places to a single best-guess GeoAnchor. Geocoding is
best-effort: every failure (no token, HTTP error, timeout, empty or malformed
result) is logged and reported as ``None`` so planning can carry on without
geographic enforcement.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from roamly.config import Settings, get_settings
from roamly.graph.utils import is_finite_coordinate
from roamly.models.entities import GeoAnchor

logger = logging.getLogger(__name__)

MAPBOX_GEOCODE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{query}.json"
FEATURE_TYPES = "place,locality,district,region,country"

LOCATION_ALIASES: Dict[str, str] = {
    "nyc": "New York City, NY, USA",
    "new york city": "New York City, NY, USA",
    "sf": "San Francisco, CA, USA",
    "la": "Los Angeles, CA, USA",
    "dc": "Washington, DC, USA",
    "dmv": "Washington, DC, USA",
}


def normalize_location(value: Optional[str]) -> str:
    """Trim the input and expand well-known abbreviations ("NYC", "SF", ...)."""
    trimmed = (value or "").strip()
    if not trimmed:
        return ""
    return LOCATION_ALIASES.get(trimmed.lower(), trimmed)


class MapboxGeocoder:
    """Async geocoder holding one aiohttp session for the lifetime of a request."""

    def __init__(self, access_token: Optional[str], timeout_seconds: float = 8.0):
        self.access_token = access_token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "MapboxGeocoder":
        settings = settings or get_settings()
        return cls(settings.mapbox_access_token, settings.geocode_timeout_seconds)

    async def __aenter__(self):
        if self.access_token:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def geocode(self, location: Optional[str]) -> Optional[GeoAnchor]:
        query = normalize_location(location)
        if not query:
            return None
        if not self.access_token:
            logger.warning("MAPBOX_ACCESS_TOKEN not set; skipping geocode for %r", query)
            return None

        try:
            features = await self._fetch_features(query)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Geocoding failed for %r: %s", query, e)
            return None

        anchor = self._anchor_from_features(query, features)
        if anchor is None:
            logger.warning("No usable geocode result for %r", query)
        else:
            logger.info("Geocoded %r to %s (%.4f, %.4f)", query, anchor.name, anchor.lat, anchor.lng)
        return anchor

    async def _fetch_features(self, query: str) -> List[Dict[str, Any]]:
        if self.session is None:
            raise ValueError("geocoder used outside of its async context")
        params = {
            "access_token": self.access_token,
            "limit": "1",
            "types": FEATURE_TYPES,
            "language": "en",
        }
        url = MAPBOX_GEOCODE_URL.format(query=quote(query, safe=""))
        async with self.session.get(url, params=params) as response:
            if response.status != 200:
                logger.warning("Mapbox geocode failed: %s %r", response.status, query)
                return []
            data = await response.json()
        features = data.get("features") if isinstance(data, dict) else None
        return features if isinstance(features, list) else []

    @staticmethod
    def _anchor_from_features(query: str, features: List[Dict[str, Any]]) -> Optional[GeoAnchor]:
        if not features or not isinstance(features[0], dict):
            return None
        feature = features[0]
        center = feature.get("center")
        if not isinstance(center, (list, tuple)) or len(center) < 2:
            return None
        lng, lat = center[0], center[1]
        if not (is_finite_coordinate(lat) and is_finite_coordinate(lng)):
            return None
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            return None
        place_name = feature.get("place_name")
        name = place_name.strip() if isinstance(place_name, str) else ""
        return GeoAnchor(name=name or query, lat=lat, lng=lng)
