from typing import Dict, List, Optional

import pytest

from roamly.models.entities import GeoAnchor

SEATTLE = GeoAnchor(name="Seattle, Washington, United States", lat=47.6062, lng=-122.3321)
PORTLAND = GeoAnchor(name="Portland, Oregon, United States", lat=45.5152, lng=-122.6784)
BELLEVUE = GeoAnchor(name="Bellevue, Washington, United States", lat=47.6101, lng=-122.2015)


def make_stop(stop_id: str, name: str, lat: Optional[float], lng: Optional[float], time: str = "9:00 AM") -> dict:
    return {
        "id": stop_id,
        "time": time,
        "name": name,
        "description": f"Visit {name}.",
        "hours": "9 AM - 5 PM",
        "cost": "Free",
        "lat": lat,
        "lng": lng,
        "tags": ["Must-see"],
    }


def make_day(day: int, stops: List[dict]) -> dict:
    return {
        "day": day,
        "title": f"Day {day}",
        "subtitle": "Sights",
        "totalDriving": "1h",
        "estimatedCost": "$40",
        "stops": stops,
    }


def seattle_itinerary(days: int = 3) -> List[dict]:
    return [
        make_day(
            d,
            [
                make_stop(f"d{d}s1", "Pike Place Market", 47.6097, -122.3422, "9:00 AM"),
                make_stop(f"d{d}s2", "Kerry Park", 47.6295, -122.3599, "1:00 PM"),
            ],
        )
        for d in range(1, days + 1)
    ]


def itinerary_with_outlier(days: int = 3) -> List[dict]:
    plan = seattle_itinerary(days)
    # Spokane is roughly 370 km east of Seattle.
    plan[1]["stops"].append(make_stop("d2s3", "Riverfront Park Spokane", 47.6606, -117.4212, "4:00 PM"))
    return plan


class FakeGateway:
    """Scripted model gateway: pops one queued response (or exception) per call."""

    def __init__(self, responses=None, stays=None, details=None):
        self.responses = list(responses or [])
        self.stays = stays
        self.details = details
        self.calls: List[Dict[str, str]] = []

    async def generate_itinerary(self, system_prompt: str, user_prompt: str):
        self.calls.append({"system": system_prompt, "user": user_prompt})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def recommend_stays(self, system_prompt: str, user_prompt: str):
        self.calls.append({"system": system_prompt, "user": user_prompt})
        if isinstance(self.stays, Exception):
            raise self.stays
        return self.stays

    async def destination_details(self, system_prompt: str, user_prompt: str):
        self.calls.append({"system": system_prompt, "user": user_prompt})
        if isinstance(self.details, Exception):
            raise self.details
        return self.details


class FakeGeocoder:
    """Static lookup geocoder; unknown places resolve to None like a failed lookup."""

    def __init__(self, places: Optional[Dict[str, GeoAnchor]] = None):
        self.places = {k.lower(): v for k, v in (places or {}).items()}
        self.queries: List[str] = []

    async def geocode(self, location):
        self.queries.append(location)
        return self.places.get((location or "").strip().lower())


@pytest.fixture
def geocoder():
    return FakeGeocoder({
        "Seattle, WA": SEATTLE,
        "Portland, OR": PORTLAND,
        "Bellevue, WA": BELLEVUE,
    })


@pytest.fixture
def offline_geocoder():
    return FakeGeocoder()
