"""
Prompt and tool-schema construction for the planner.

Everything here is pure string/dict building: no validation, no network.
"""

import json
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from roamly.graph.utils import DESTINATION_RADIUS_KM
from roamly.models.entities import GeoAnchor, GeoOutlier
from roamly.models.trip_request import StayRequest, TripRequest

# Radius applied to recommended stays around the destination anchor.
STAY_RADIUS_KM = 45.0

MAX_LISTED_OUTLIERS = 4

PACE_STOPS = {
    "relaxed": "2-3 stops per day",
    "balanced": "4-5 stops per day",
    "adventure-packed": "6 or more stops per day",
}


def _strict_object(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


def _function_tool(name: str, description: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "function", "function": {"name": name, "description": description, "parameters": parameters}}


STOP_SCHEMA = _strict_object(
    {
        "id": {"type": "string", "description": "Unique stop ID, format d{day}s{num}"},
        "time": {"type": "string", "description": "Suggested arrival time, e.g. '9:00 AM'"},
        "name": {"type": "string", "description": "Place name"},
        "description": {"type": "string", "description": "1-2 sentence description of why to visit"},
        "hours": {"type": "string", "description": "Opening hours"},
        "cost": {"type": "string", "description": "Entry cost"},
        "driveFromPrev": {"type": "string", "description": "Travel time from previous stop"},
        "lat": {"type": "number", "description": "Latitude"},
        "lng": {"type": "number", "description": "Longitude"},
        "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags like Nature, Food, Free"},
    },
    ["id", "time", "name", "description", "hours", "cost", "lat", "lng", "tags"],
)

DAY_SCHEMA = _strict_object(
    {
        "day": {"type": "number", "description": "Day number"},
        "title": {"type": "string", "description": "Day title, e.g. 'Seattle to Olympia'"},
        "subtitle": {"type": "string", "description": "Short theme, e.g. 'Nature & Scenic'"},
        "totalDriving": {"type": "string", "description": "Total travel time, e.g. '3h 20m'"},
        "estimatedCost": {"type": "string", "description": "Estimated cost for the day, e.g. '$85'"},
        "stops": {"type": "array", "items": STOP_SCHEMA},
    },
    ["day", "title", "subtitle", "totalDriving", "estimatedCost", "stops"],
)

ITINERARY_TOOL = _function_tool(
    "generate_itinerary",
    "Generate a structured day-by-day trip itinerary",
    _strict_object({"itinerary": {"type": "array", "items": DAY_SCHEMA}}, ["itinerary"]),
)

STAY_SCHEMA = _strict_object(
    {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "type": {"type": "string", "description": "Hotel, Boutique Hotel, Hostel, Apartment, etc."},
        "neighborhood": {"type": "string"},
        "address": {"type": "string"},
        "nightlyPrice": {"type": "string"},
        "style": {"type": "string", "description": "Short style label, e.g. Design-forward, Quiet luxury, Value smart"},
        "why": {"type": "string", "description": "Why this stay fits the itinerary"},
        "bestFor": {"type": "string", "description": "Best for couples, families, remote work, food scene, etc."},
        "lat": {"type": "number"},
        "lng": {"type": "number"},
    },
    ["id", "name", "type", "neighborhood", "address", "nightlyPrice", "style", "why", "bestFor", "lat", "lng"],
)

STAYS_TOOL = _function_tool(
    "recommend_stays",
    "Return stay recommendations for a destination",
    _strict_object({"stays": {"type": "array", "items": STAY_SCHEMA}}, ["stays"]),
)

_DETAIL_RESTAURANT = _strict_object(
    {
        "name": {"type": "string"},
        "cuisine": {"type": "string"},
        "priceRange": {"type": "string", "description": "e.g. $, $$, $$$"},
        "rating": {"type": "number", "description": "Rating out of 5"},
        "description": {"type": "string", "description": "1 sentence"},
        "address": {"type": "string"},
    },
    ["name", "cuisine", "priceRange", "rating", "description", "address"],
)
_DETAIL_STAY = _strict_object(
    {
        "name": {"type": "string"},
        "type": {"type": "string", "description": "e.g. Hotel, Boutique Hotel, Hostel, B&B"},
        "priceRange": {"type": "string", "description": "e.g. $80-120/night"},
        "rating": {"type": "number", "description": "Rating out of 5"},
        "neighborhood": {"type": "string"},
        "description": {"type": "string", "description": "1 sentence"},
    },
    ["name", "type", "priceRange", "rating", "neighborhood", "description"],
)
_DETAIL_THING = _strict_object(
    {
        "name": {"type": "string"},
        "category": {"type": "string", "description": "e.g. Museum, Park, Landmark, Activity"},
        "price": {"type": "string", "description": "e.g. Free, $15, $25-40"},
        "rating": {"type": "number", "description": "Rating out of 5"},
        "description": {"type": "string", "description": "1 sentence"},
    },
    ["name", "category", "price", "rating", "description"],
)

DESTINATION_DETAILS_TOOL = _function_tool(
    "provide_destination_details",
    "Return structured destination information with overview, restaurants, hotels, things to do",
    _strict_object(
        {
            "overview": _strict_object(
                {
                    "description": {"type": "string", "description": "1 short paragraph"},
                    "bestTimeToVisit": {"type": "string"},
                    "knownFor": {"type": "array", "items": {"type": "string"}, "description": "3-4 highlights"},
                    "safetyTips": {"type": "string", "description": "Brief safety and practical tips"},
                    "language": {"type": "string", "description": "Primary language spoken"},
                    "currency": {"type": "string", "description": "Local currency"},
                },
                ["description", "bestTimeToVisit", "knownFor", "safetyTips", "language", "currency"],
            ),
            "restaurants": {"type": "array", "items": _DETAIL_RESTAURANT, "description": "4 restaurant recommendations"},
            "stays": {"type": "array", "items": _DETAIL_STAY, "description": "4 hotel/stay recommendations"},
            "thingsToDo": {"type": "array", "items": _DETAIL_THING, "description": "4 activity/attraction recommendations"},
            "location": _strict_object(
                {
                    "lat": {"type": "number"},
                    "lng": {"type": "number"},
                    "formattedAddress": {"type": "string"},
                    "region": {"type": "string", "description": "Region or country"},
                },
                ["lat", "lng", "formattedAddress", "region"],
            ),
        },
        ["overview", "restaurants", "stays", "thingsToDo", "location"],
    ),
)


# ---------------------------------------------------------------------------
# Itinerary prompts
# ---------------------------------------------------------------------------

def _format_list(value: Any, fallback: str) -> str:
    if isinstance(value, list):
        items = [str(v).strip() for v in value if str(v).strip()]
        return ", ".join(items) if items else fallback
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _mode_rules(mode: Optional[str]) -> List[str]:
    key = (mode or "").strip().lower()
    if key in ("car", "drive", "driving", "road trip"):
        return [
            "- Travel is by car: estimate realistic driving times between stops (e.g. '25m drive')",
            "- Include gas and parking in each day's estimated cost",
        ]
    if key in ("plane", "flight", "fly"):
        return [
            "- The traveler flies in and then gets around by transit, rideshare, or on foot",
            "- Estimate local transit/rideshare/walking times between stops, not flight times",
            "- Leave airfare out of daily costs but include local transport",
        ]
    if key in ("train", "rail"):
        return [
            "- Travel is by train plus local transit: estimate rail and transit times between stops",
            "- Include rail and transit fares in each day's estimated cost",
        ]
    return [
        "- Estimate realistic travel times between stops for the chosen travel mode",
        "- Include local transport in each day's estimated cost",
    ]


def _pace_rule(pace: Optional[str]) -> str:
    label = (pace or "Balanced").strip()
    stops = PACE_STOPS.get(label.lower())
    if stops:
        return f"- Match the number of stops per day to the pace preference ({label}: {stops})"
    return "- Match the number of stops per day to the pace preference"


def _anchor_label(anchor: GeoAnchor) -> str:
    return f"{anchor.name} ({anchor.lat:.4f}, {anchor.lng:.4f})"


def trip_destination(request: TripRequest) -> str:
    """The place the trip is about: the destination, or the origin when none was given."""
    return (request.destination or "").strip() or (request.origin or "").strip()


def _date_lines(start: date, end: date, days: int) -> List[str]:
    lines = [
        f"- Travel dates: {start:%A, %B} {start.day}, {start.year} to {end:%A, %B} {end.day}, {end.year}",
    ]
    for offset in range(days):
        current = start + timedelta(days=offset)
        if current > end:
            break
        lines.append(f"  - Day {offset + 1}: {current:%a, %b} {current.day}")
    return lines


def _geographic_constraint(
    request: TripRequest,
    days: int,
    single_destination: bool,
    origin_anchor: Optional[GeoAnchor],
    destination_anchor: Optional[GeoAnchor],
) -> str:
    destination = trip_destination(request)
    if single_destination:
        if destination_anchor is not None:
            return (
                "Destination anchor (hard rule):\n"
                f"- Center the whole trip around {_anchor_label(destination_anchor)}\n"
                f"- Every stop must be within {DESTINATION_RADIUS_KM:.0f} km of this anchor\n"
                "- Do not include stops in other cities or regions, however famous"
            )
        return (
            "Destination focus:\n"
            f"- Keep every stop in and around {destination}\n"
            "- Do not route the trip through other cities"
        )

    start = _anchor_label(origin_anchor) if origin_anchor else request.origin
    finish = _anchor_label(destination_anchor) if destination_anchor else request.destination
    return (
        "Route corridor:\n"
        f"- Day 1 starts near {start}\n"
        f"- Day {days} finishes near {finish}\n"
        "- Keep stops along a plausible corridor between start and finish; avoid large detours\n"
        "- Each day should make steady progress toward the destination"
    )


def compose_itinerary_prompts(
    request: TripRequest,
    days: int,
    single_destination: bool,
    origin_anchor: Optional[GeoAnchor] = None,
    destination_anchor: Optional[GeoAnchor] = None,
) -> Tuple[str, str]:
    """
    Build the (system, user) prompt pair for a fresh itinerary or an adjustment.
    """
    destination = trip_destination(request)
    lines = [
        "You are an expert trip planner. Generate a detailed day-by-day itinerary.",
        "",
        "Trip details:",
        f"- From: {request.origin or destination}",
        f"- To: {destination}",
        f"- Duration: {days} days",
        f"- Budget level: {request.budget or 'Not specified'}",
        f"- Travel mode: {request.mode or 'Not specified'}",
        f"- Interests: {_format_list(request.interests, 'General sightseeing')}",
        f"- Pace: {request.pace or 'Balanced'}",
        f"- Must-see spots: {_format_list(request.must_sees, 'None specified')}",
    ]
    if request.has_dates:
        lines.extend(_date_lines(request.start_date, request.end_date, days))

    lines += [
        "",
        "Requirements:",
        f"- Return exactly {days} days numbered 1 to {days}",
        "- Use REAL place names, addresses, and approximate GPS coordinates (lat/lng)",
        "- Include realistic opening hours, costs, and travel times between stops",
        "- Cluster nearby stops together for efficiency",
        "- Order stops by suggested time and around opening hours",
        _pace_rule(request.pace),
        "- Include a mix of activities matching the traveler's interests",
        "- Each stop needs an id unique across the whole trip (format: d{day}s{stopNum}, e.g. \"d1s1\")",
        "- Assign appropriate tags to each stop (e.g. \"Nature\", \"Food\", \"Free\", \"Historic\", \"Must-see\")",
        "- Include an estimated total cost per day",
    ]
    lines += _mode_rules(request.mode)

    if request.has_dates:
        lines += [
            "- Title each day with its calendar date (e.g. \"Sat, Jun 7 - Waterfront & Markets\")",
            "- Account for the season, weather, and day of week (closures, weekend crowds, markets, events)",
        ]

    system_prompt = "\n".join(lines)
    system_prompt += "\n\n" + _geographic_constraint(
        request, days, single_destination, origin_anchor, destination_anchor
    )

    if request.is_adjustment:
        current = request.current_itinerary
        if current is None:
            current_text = "Not provided"
        elif isinstance(current, str):
            current_text = current
        else:
            current_text = json.dumps(current, ensure_ascii=False, default=str)
        system_prompt += (
            "\n\nAdjustment request from the traveler:\n"
            f"\"{request.adjustment_request.strip()}\"\n\n"
            f"Current itinerary (JSON):\n{current_text}\n\n"
            "Apply the adjustment and return the complete updated itinerary. "
            "Keep what the traveler did not ask to change unless the change requires it."
        )
        user_prompt = (
            f"Update the existing {days}-day itinerary for {destination} with this change: "
            f"{request.adjustment_request.strip()}"
        )
    elif single_destination:
        user_prompt = f"Generate a {days}-day itinerary for {destination}."
    else:
        user_prompt = f"Generate a {days}-day trip itinerary from {request.origin} to {destination}."

    return system_prompt, user_prompt


def build_correction_prompt(
    system_prompt: str,
    outliers: List[GeoOutlier],
    anchor: GeoAnchor,
    radius_km: float = DESTINATION_RADIUS_KM,
) -> str:
    """Append a quality-control section naming the offending stops."""
    listed = "\n".join(
        f"- Day {o.day}: {o.name} ({o.distance_km:.0f} km away)" for o in outliers[:MAX_LISTED_OUTLIERS]
    )
    return (
        f"{system_prompt}\n\n"
        "QUALITY CONTROL FAILURE:\n"
        f"The previous itinerary placed stops too far from {anchor.name}:\n"
        f"{listed}\n\n"
        "Regenerate the entire itinerary from scratch. "
        f"Every stop must be within {radius_km:.0f} km of {_anchor_label(anchor)}. "
        "Replace distant places with nearby alternatives rather than moving them."
    )


# ---------------------------------------------------------------------------
# Stay and destination-detail prompts
# ---------------------------------------------------------------------------

def summarize_itinerary_for_stays(itinerary: Any) -> str:
    if not isinstance(itinerary, list):
        return ""
    lines = []
    for day in itinerary[:4]:
        if not isinstance(day, dict):
            continue
        label = f"Day {day['day']}" if isinstance(day.get("day"), int) else "Day"
        stops = day.get("stops") if isinstance(day.get("stops"), list) else []
        names = [s["name"] for s in stops[:3] if isinstance(s, dict) and isinstance(s.get("name"), str)]
        if names:
            lines.append(f"- {label}: {', '.join(names)}")
    return "\n".join(lines)


def summarize_preferences(preferences: Optional[Dict[str, Any]]) -> str:
    if not isinstance(preferences, dict):
        return "General"
    interests = preferences.get("interests")
    interests = [i for i in interests if isinstance(i, str)] if isinstance(interests, list) else []
    pace = preferences.get("pace") if isinstance(preferences.get("pace"), str) else ""

    chunks = []
    if interests:
        chunks.append(f"Interests: {', '.join(interests)}")
    if pace:
        chunks.append(f"Pace: {pace}")
    return " | ".join(chunks) if chunks else "General"


def compose_stay_prompts(destination: str, request: StayRequest, anchor: Optional[GeoAnchor]) -> Tuple[str, str]:
    if request.start_date and request.end_date:
        window = f"{request.start_date.isoformat()} to {request.end_date.isoformat()}"
    else:
        window = "Flexible dates"

    system_prompt = f"""You are a travel accommodation concierge. Recommend a short list of places to stay.

Trip context:
- Destination: {destination}
- Duration: {request.resolved_days} days
- Date window: {window}
- Budget vibe: {request.budget_label}
- Traveler profile: {summarize_preferences(request.preferences)}

Requirements:
- Return 6 strong options with variety (boutique, design-forward, practical value, etc.)
- Use REAL accommodation names and plausible addresses
- Keep recommendations in or near neighborhoods that fit the trip plan
- Nightly price should be a realistic range string (e.g. "$180-$240/night")
- Include why each option is a fit for this itinerary
- Avoid duplicate chains unless they are in distinct neighborhoods
- Keep descriptions concise and specific"""

    summary = summarize_itinerary_for_stays(request.itinerary)
    if summary:
        system_prompt += f"\n\nNearby activity context:\n{summary}"

    if anchor is not None:
        system_prompt += (
            "\n\nDestination anchor (hard rule):\n"
            f"- Center around {_anchor_label(anchor)}\n"
            f"- Every recommendation must be within {STAY_RADIUS_KM:.0f} km of this anchor"
        )

    user_prompt = f"Recommend stays for {destination} with budget vibe \"{request.budget_label}\"."
    return system_prompt, user_prompt


def compose_details_prompts(name: str, lat: Optional[float], lng: Optional[float]) -> Tuple[str, str]:
    system_prompt = (
        "You are a concise travel guide. Given a destination, return real info with real names and prices. "
        "Keep descriptions to 1 sentence each. Be brief."
    )
    where = f" at {lat},{lng}" if lat is not None and lng is not None else ""
    user_prompt = f"Quick travel guide for \"{name}\"{where}. Real places, brief descriptions."
    return system_prompt, user_prompt
