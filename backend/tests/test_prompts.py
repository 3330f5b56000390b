import json

from conftest import PORTLAND, SEATTLE
from roamly.graph.prompts import (
    DESTINATION_DETAILS_TOOL,
    ITINERARY_TOOL,
    STAYS_TOOL,
    build_correction_prompt,
    compose_details_prompts,
    compose_itinerary_prompts,
    compose_stay_prompts,
    summarize_itinerary_for_stays,
    summarize_preferences,
)
from roamly.models.entities import GeoOutlier
from roamly.models.trip_request import StayRequest, TripRequest


def _request(**overrides):
    data = {
        "from": "Seattle, WA",
        "to": "Seattle, WA",
        "days": "Weekend",
        "budget": "Moderate",
        "mode": "car",
        "interests": ["Food & Drink", "Hiking & Nature"],
        "pace": "Relaxed",
        "mustSees": "Pike Place Market",
    }
    data.update(overrides)
    return TripRequest.model_validate(data)


def test_single_destination_prompt_carries_hard_radius():
    system, user = compose_itinerary_prompts(_request(), 3, True, SEATTLE, SEATTLE)
    assert "Destination anchor (hard rule)" in system
    assert "within 55 km" in system
    assert "47.6062" in system
    assert "Route corridor" not in system
    assert "Food & Drink, Hiking & Nature" in system
    assert "Pike Place Market" in system
    assert "Relaxed: 2-3 stops per day" in system
    assert "d{day}s{stopNum}" in system
    assert user == "Generate a 3-day itinerary for Seattle, WA."


def test_single_destination_without_anchor_falls_back_to_soft_focus():
    system, _ = compose_itinerary_prompts(_request(), 3, True, None, None)
    assert "Destination focus" in system
    assert "hard rule" not in system


def test_route_prompt_uses_corridor_rule():
    request = _request(to="Portland, OR")
    system, user = compose_itinerary_prompts(request, 3, False, SEATTLE, PORTLAND)
    assert "Route corridor" in system
    assert "Day 1 starts near Seattle" in system
    assert "Day 3 finishes near Portland" in system
    assert "hard rule" not in system
    assert user == "Generate a 3-day trip itinerary from Seattle, WA to Portland, OR."


def test_route_prompt_without_anchors_uses_raw_text():
    system, _ = compose_itinerary_prompts(_request(to="Portland, OR"), 3, False, None, None)
    assert "Day 1 starts near Seattle, WA" in system
    assert "Day 3 finishes near Portland, OR" in system


def test_travel_mode_rules():
    car, _ = compose_itinerary_prompts(_request(mode="car"), 3, True)
    plane, _ = compose_itinerary_prompts(_request(mode="plane"), 3, True)
    train, _ = compose_itinerary_prompts(_request(mode="train"), 3, True)
    assert "gas and parking" in car
    assert "Leave airfare out" in plane
    assert "rail and transit" in train


def test_defaults_for_missing_preferences():
    system, _ = compose_itinerary_prompts(_request(interests=[], pace=None, mustSees=None), 3, True)
    assert "Interests: General sightseeing" in system
    assert "Pace: Balanced" in system
    assert "Must-see spots: None specified" in system


def test_dates_add_date_aware_titles():
    request = _request(startDate="2026-06-05", endDate="2026-06-07")
    system, _ = compose_itinerary_prompts(request, 3, True, SEATTLE, SEATTLE)
    assert "Friday, June 5, 2026 to Sunday, June 7, 2026" in system
    assert "Day 1: Fri, Jun 5" in system
    assert "Day 3: Sun, Jun 7" in system
    assert "day of week" in system


def test_no_dates_no_date_rules():
    system, _ = compose_itinerary_prompts(_request(), 3, True)
    assert "Travel dates" not in system
    assert "calendar date" not in system


def test_adjustment_embeds_request_and_prior_itinerary():
    prior = [{"day": 1, "title": "Old plan", "stops": [{"id": "d1s1", "name": "Space Needle"}]}]
    request = _request(adjustmentRequest="Swap the museum for a hike", currentItinerary=prior)
    system, user = compose_itinerary_prompts(request, 3, True, SEATTLE, SEATTLE)
    assert "Swap the museum for a hike" in system
    assert json.dumps(prior, ensure_ascii=False) in system
    assert user.startswith("Update the existing 3-day itinerary for Seattle, WA")
    assert "Swap the museum for a hike" in user


def test_correction_prompt_lists_at_most_four_outliers():
    outliers = [GeoOutlier(day=i, name=f"Far place {i}", distance_km=100 + i) for i in range(1, 7)]
    prompt = build_correction_prompt("BASE PROMPT", outliers, SEATTLE)
    assert prompt.startswith("BASE PROMPT")
    assert "QUALITY CONTROL FAILURE" in prompt
    assert "Far place 4" in prompt
    assert "Far place 5" not in prompt
    assert "(101 km away)" in prompt
    assert "Regenerate the entire itinerary from scratch" in prompt
    assert "within 55 km" in prompt


def test_itinerary_tool_is_strict():
    params = ITINERARY_TOOL["function"]["parameters"]
    day = params["properties"]["itinerary"]["items"]
    stop = day["properties"]["stops"]["items"]
    assert params["additionalProperties"] is False
    assert day["additionalProperties"] is False
    assert stop["additionalProperties"] is False
    assert set(day["required"]) == {"day", "title", "subtitle", "totalDriving", "estimatedCost", "stops"}
    assert "driveFromPrev" not in stop["required"]
    assert {"lat", "lng", "tags", "id"} <= set(stop["required"])


def test_other_tools_have_expected_names():
    assert STAYS_TOOL["function"]["name"] == "recommend_stays"
    assert DESTINATION_DETAILS_TOOL["function"]["name"] == "provide_destination_details"


def test_stay_prompt_with_anchor_and_context():
    request = StayRequest.model_validate({
        "to": "Seattle, WA",
        "days": "Weekend",
        "budgetVibe": "Boutique",
        "preferences": {"interests": ["Food & Drink"], "pace": "Relaxed"},
        "itinerary": [{"day": 1, "stops": [{"name": "Pike Place Market"}, {"name": "Kerry Park"}]}],
    })
    system, user = compose_stay_prompts("Seattle, WA", request, SEATTLE)
    assert "Duration: 3 days" in system
    assert "Flexible dates" in system
    assert "Interests: Food & Drink | Pace: Relaxed" in system
    assert "- Day 1: Pike Place Market, Kerry Park" in system
    assert "within 45 km" in system
    assert user == 'Recommend stays for Seattle, WA with budget vibe "Boutique".'


def test_stay_summaries_are_bounded():
    days = [{"day": d, "stops": [{"name": f"S{d}-{i}"} for i in range(5)]} for d in range(1, 7)]
    summary = summarize_itinerary_for_stays(days)
    assert summary.count("\n") == 3
    assert "S1-3" not in summary
    assert summarize_itinerary_for_stays("nope") == ""
    assert summarize_preferences(None) == "General"
    assert summarize_preferences({"interests": [], "pace": ""}) == "General"


def test_details_prompt():
    _, user = compose_details_prompts("Lisbon", 38.72, -9.14)
    assert user == 'Quick travel guide for "Lisbon" at 38.72,-9.14. Real places, brief descriptions.'
