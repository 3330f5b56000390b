import asyncio
import logging
from typing import Any, Dict, List

from langchain_core.runnables import RunnableConfig

from .state import RunState, Stage
from roamly.graph.postprocess.assemble import assemble_itinerary
from roamly.graph.postprocess.geo_check import filter_within_radius, find_geo_outliers
from roamly.graph.prompts import (
    STAY_RADIUS_KM,
    build_correction_prompt,
    compose_details_prompts,
    compose_itinerary_prompts,
    compose_stay_prompts,
    trip_destination,
)
from roamly.graph.utils import DESTINATION_RADIUS_KM, is_single_destination
from roamly.integrations.errors import IntegrationError, PlannerAPIError
from roamly.integrations.geocoding_client import normalize_location
from roamly.models.trip_request import DestinationDetailsRequest, StayRequest

logger = logging.getLogger(__name__)

MIN_STAYS = 3
MAX_STAYS = 6


def _collaborator(config: RunnableConfig, name: str):
    collaborator = (config or {}).get("configurable", {}).get(name)
    if collaborator is None:
        raise IntegrationError(f"planner graph invoked without a {name}")
    return collaborator


def _log(state: RunState, stage: Stage, message: str, **extra) -> List[dict]:
    logger.info("[%s] %s", stage.value, message)
    return state.logs + [{"stage": stage.value, "message": message, **extra}]


async def locate_agent(state: RunState, config: RunnableConfig) -> Dict[str, Any]:
    """Resolve origin and destination anchors; identical places are geocoded once."""
    geocoder = _collaborator(config, "geocoder")
    request = state.request
    destination = trip_destination(request)
    if not destination:
        raise PlannerAPIError(400, "Destination is required to plan a trip.")
    origin = (request.origin or "").strip() or destination

    if normalize_location(origin).lower() == normalize_location(destination).lower():
        destination_anchor = await geocoder.geocode(destination)
        origin_anchor = destination_anchor
    else:
        origin_anchor, destination_anchor = await asyncio.gather(
            geocoder.geocode(origin),
            geocoder.geocode(destination),
        )

    return {
        "destination": destination,
        "days": request.resolved_days,
        "origin_anchor": origin_anchor,
        "destination_anchor": destination_anchor,
        "logs": _log(
            state,
            Stage.LOCATING,
            f"Anchors resolved: origin={'yes' if origin_anchor else 'no'}, destination={'yes' if destination_anchor else 'no'}",
        ),
    }


def classify_agent(state: RunState) -> Dict[str, Any]:
    request = state.request
    origin = (request.origin or "").strip() or state.destination
    single = is_single_destination(origin, state.destination, state.origin_anchor, state.destination_anchor)
    kind = "single-destination" if single else "route"
    return {
        "single_destination": single,
        "logs": _log(state, Stage.LOCATING, f"Classified {origin!r} -> {state.destination!r} as {kind}"),
    }


def compose_agent(state: RunState) -> Dict[str, Any]:
    system_prompt, user_prompt = compose_itinerary_prompts(
        state.request,
        state.days,
        state.single_destination,
        origin_anchor=state.origin_anchor,
        destination_anchor=state.destination_anchor,
    )
    return {"system_prompt": system_prompt, "user_prompt": user_prompt, "stage": Stage.DRAFTING}


async def draft_agent(state: RunState, config: RunnableConfig) -> Dict[str, Any]:
    gateway = _collaborator(config, "gateway")
    itinerary = await gateway.generate_itinerary(state.system_prompt, state.user_prompt)
    return {
        "itinerary": itinerary,
        "gateway_calls": state.gateway_calls + 1,
        "stage": Stage.VERIFYING,
        "logs": _log(state, Stage.DRAFTING, f"Draft returned {len(itinerary)} days"),
    }


def _check(state: RunState):
    # Only single-destination trips with a resolved anchor have a hard radius.
    if not state.single_destination or state.destination_anchor is None:
        return []
    return find_geo_outliers(state.itinerary, state.destination_anchor, DESTINATION_RADIUS_KM)


def verify_draft_agent(state: RunState) -> Dict[str, Any]:
    outliers = _check(state)
    if outliers:
        logger.warning(
            "Draft for %s has %d stops outside %.0f km: %s",
            state.destination,
            len(outliers),
            DESTINATION_RADIUS_KM,
            [(o.day, o.name, round(o.distance_km, 1)) for o in outliers],
        )
    message = f"{len(outliers)} stops outside radius" if outliers else "Draft passed geographic check"
    return {
        "outliers": outliers,
        "stage": Stage.CORRECTING if outliers else Stage.DONE,
        "logs": _log(state, Stage.VERIFYING, message),
    }


async def correction_agent(state: RunState, config: RunnableConfig) -> Dict[str, Any]:
    gateway = _collaborator(config, "gateway")
    corrected_prompt = build_correction_prompt(state.system_prompt, state.outliers, state.destination_anchor)
    itinerary = await gateway.generate_itinerary(corrected_prompt, state.user_prompt)
    return {
        "itinerary": itinerary,
        "gateway_calls": state.gateway_calls + 1,
        "stage": Stage.REVERIFYING,
        "logs": _log(state, Stage.CORRECTING, f"Correction returned {len(itinerary)} days"),
    }


def verify_correction_agent(state: RunState) -> Dict[str, Any]:
    outliers = _check(state)
    if outliers:
        logger.error(
            "Corrected itinerary for %s still has stops outside %.0f km: %s",
            state.destination,
            DESTINATION_RADIUS_KM,
            [(o.day, o.name, round(o.distance_km, 1)) for o in outliers],
        )
    message = f"{len(outliers)} stops still outside radius" if outliers else "Correction passed geographic check"
    return {
        "outliers": outliers,
        "stage": Stage.FAILED if outliers else Stage.DONE,
        "logs": _log(state, Stage.REVERIFYING, message),
    }


def fail_agent(state: RunState) -> Dict[str, Any]:
    raise PlannerAPIError(
        500,
        f"Couldn't keep every stop near {state.destination}. "
        "Try a more specific destination, such as adding the state or country.",
    )


def finalize_agent(state: RunState) -> Dict[str, Any]:
    return {
        "itinerary": assemble_itinerary(state.itinerary),
        "stage": Stage.DONE,
        "logs": _log(state, Stage.DONE, f"Itinerary ready after {state.gateway_calls} model call(s)"),
    }


# ---------------------------------------------------------------------------
# Stand-alone agents used outside the itinerary graph
# ---------------------------------------------------------------------------

async def stay_agent(request: StayRequest, gateway, geocoder) -> List[Dict[str, Any]]:
    destination = normalize_location(request.destination) or normalize_location(request.origin)
    if not destination:
        raise PlannerAPIError(400, "Destination is required to recommend stays.")

    anchor = await geocoder.geocode(destination)
    system_prompt, user_prompt = compose_stay_prompts(destination, request, anchor)
    stays = await gateway.recommend_stays(system_prompt, user_prompt)

    kept = filter_within_radius(stays, anchor, STAY_RADIUS_KM) if anchor else stays
    logger.info(f"Stay agent kept {len(kept)} of {len(stays)} stays for {destination}")
    if len(kept) < MIN_STAYS:
        raise PlannerAPIError(500, f"Couldn't find enough destination-accurate stays for {destination}. Try again.")
    return kept[:MAX_STAYS]


async def destination_details_agent(request: DestinationDetailsRequest, gateway) -> Dict[str, Any]:
    system_prompt, user_prompt = compose_details_prompts(request.name, request.lat, request.lng)
    details = await gateway.destination_details(system_prompt, user_prompt)
    logger.info("Destination details ready for %s", request.name)
    return details
