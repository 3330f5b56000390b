import asyncio

import pytest

from conftest import FakeGateway, SEATTLE, itinerary_with_outlier, seattle_itinerary
from roamly.graph.build_graph import generate_itinerary, plan_itinerary
from roamly.graph.postprocess.assemble import DAY_COLORS
from roamly.graph.state import Stage
from roamly.graph.utils import haversine_km
from roamly.integrations.errors import PlannerAPIError
from roamly.models.trip_request import TripRequest


def _run(request, gateway, geocoder):
    return asyncio.run(plan_itinerary(request, gateway, geocoder))


def _seattle_request(**overrides):
    data = {"from": "Seattle, WA", "to": "Seattle, WA", "days": 3, "mode": "car"}
    data.update(overrides)
    return TripRequest.model_validate(data)


def test_single_destination_clean_draft_needs_one_call(geocoder):
    gateway = FakeGateway([seattle_itinerary()])
    result = _run(_seattle_request(), gateway, geocoder)

    assert result["single_destination"] is True
    assert result["stage"] == Stage.DONE
    assert result["gateway_calls"] == 1
    assert len(gateway.calls) == 1
    assert geocoder.queries == ["Seattle, WA"]
    for day in result["itinerary"]:
        for stop in day["stops"]:
            assert haversine_km(SEATTLE.lat, SEATTLE.lng, stop["lat"], stop["lng"]) <= 55


def test_outlier_triggers_one_correction_round(geocoder):
    corrected = seattle_itinerary()
    gateway = FakeGateway([itinerary_with_outlier(), corrected])
    result = _run(_seattle_request(), gateway, geocoder)

    assert len(gateway.calls) == 2
    assert result["gateway_calls"] == 2
    correction_prompt = gateway.calls[1]["system"]
    assert correction_prompt.startswith(gateway.calls[0]["system"])
    assert "QUALITY CONTROL FAILURE" in correction_prompt
    assert "Day 2: Riverfront Park Spokane" in correction_prompt
    assert gateway.calls[1]["user"] == gateway.calls[0]["user"]
    assert [d["stops"] for d in result["itinerary"]] == [d["stops"] for d in corrected]


def test_still_invalid_after_correction_fails_with_destination_message(geocoder):
    gateway = FakeGateway([itinerary_with_outlier(), itinerary_with_outlier()])
    with pytest.raises(PlannerAPIError) as excinfo:
        _run(_seattle_request(), gateway, geocoder)

    assert excinfo.value.status_code == 500
    assert "Seattle, WA" in excinfo.value.message
    assert "Spokane" not in excinfo.value.message
    assert len(gateway.calls) == 2


def test_route_trip_skips_radius_check(geocoder):
    # A stop far from Portland is acceptable on a Seattle -> Portland route.
    gateway = FakeGateway([itinerary_with_outlier()])
    request = _seattle_request(to="Portland, OR")
    result = _run(request, gateway, geocoder)

    assert result["single_destination"] is False
    assert len(gateway.calls) == 1
    assert "Route corridor" in gateway.calls[0]["system"]
    assert sorted(geocoder.queries) == ["Portland, OR", "Seattle, WA"]


def test_nearby_origin_is_single_destination(geocoder):
    gateway = FakeGateway([itinerary_with_outlier(), seattle_itinerary()])
    request = _seattle_request(**{"from": "Bellevue, WA"})
    result = _run(request, gateway, geocoder)

    assert result["single_destination"] is True
    assert len(gateway.calls) == 2


def test_geocoding_outage_degrades_to_unchecked_itinerary(offline_geocoder):
    gateway = FakeGateway([itinerary_with_outlier()])
    result = _run(_seattle_request(to="Portland, OR"), gateway, offline_geocoder)

    assert result["origin_anchor"] is None
    assert result["destination_anchor"] is None
    assert len(gateway.calls) == 1
    assert len(result["itinerary"]) == 3


def test_same_text_without_anchor_is_single_but_unchecked(offline_geocoder):
    gateway = FakeGateway([itinerary_with_outlier()])
    result = _run(_seattle_request(), gateway, offline_geocoder)

    assert result["single_destination"] is True
    assert len(gateway.calls) == 1
    assert "Destination focus" in gateway.calls[0]["system"]


def test_draft_failure_propagates_without_retry(geocoder):
    gateway = FakeGateway([PlannerAPIError(429, "Rate limit exceeded. Please try again in a moment.")])
    with pytest.raises(PlannerAPIError) as excinfo:
        _run(_seattle_request(), gateway, geocoder)
    assert excinfo.value.status_code == 429
    assert len(gateway.calls) == 1


def test_correction_failure_propagates(geocoder):
    gateway = FakeGateway([itinerary_with_outlier(), PlannerAPIError(402, "AI credits exhausted.")])
    with pytest.raises(PlannerAPIError) as excinfo:
        _run(_seattle_request(), gateway, geocoder)
    assert excinfo.value.status_code == 402
    assert len(gateway.calls) == 2


def test_missing_destination_is_an_input_error(geocoder):
    gateway = FakeGateway([])
    request = TripRequest.model_validate({"from": "  ", "to": ""})
    with pytest.raises(PlannerAPIError) as excinfo:
        _run(request, gateway, geocoder)
    assert excinfo.value.status_code == 400
    assert gateway.calls == []


def test_origin_only_request_plans_around_origin(geocoder):
    gateway = FakeGateway([seattle_itinerary()])
    result = _run(TripRequest.model_validate({"from": "Seattle, WA", "days": "Weekend"}), gateway, geocoder)
    assert result["destination"] == "Seattle, WA"
    assert result["single_destination"] is True
    assert result["days"] == 3


def test_generate_itinerary_returns_colored_days(geocoder):
    gateway = FakeGateway([seattle_itinerary(3)])
    days = asyncio.run(generate_itinerary(_seattle_request(), gateway, geocoder))
    assert [d["color"] for d in days] == list(DAY_COLORS[:3])


def test_adjustment_request_reaches_model(geocoder):
    prior = seattle_itinerary(2)
    gateway = FakeGateway([seattle_itinerary(2)])
    request = _seattle_request(days=2, adjustmentRequest="Add a ferry ride", currentItinerary=prior)
    _run(request, gateway, geocoder)
    assert "Add a ferry ride" in gateway.calls[0]["system"]
    assert gateway.calls[0]["user"].startswith("Update the existing 2-day itinerary")
