
import argparse
import asyncio
import json

from roamly.graph.build_graph import plan_itinerary
from roamly.integrations.geocoding_client import MapboxGeocoder
from roamly.integrations.openai_client import ModelGateway
from roamly.models.trip_request import TripRequest


def format_response(result: dict) -> dict:
    """Shape final graph values the way the HTTP endpoint returns them, plus stage logs."""
    return {"itinerary": result.get("itinerary", []), "logs": result.get("logs", [])}


async def run(request: TripRequest) -> dict:
    gateway = ModelGateway.from_settings()
    async with MapboxGeocoder.from_settings() as geocoder:
        result = await plan_itinerary(request, gateway, geocoder)
    return format_response(result)


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate a trip itinerary from the command line")
    parser.add_argument("--from", dest="origin", default="Seattle, WA")
    parser.add_argument("--to", dest="destination", default="Seattle, WA")
    parser.add_argument("--days", default="Weekend")
    parser.add_argument("--budget", default="Moderate")
    parser.add_argument("--mode", default="car")
    parser.add_argument("--pace", default="Balanced")
    parser.add_argument("--interest", dest="interests", action="append", default=[])
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args()
    request = TripRequest(
        origin=args.origin,
        destination=args.destination,
        days=args.days,
        budget=args.budget,
        mode=args.mode,
        pace=args.pace,
        interests=args.interests,
    )
    response = asyncio.run(run(request))
    print(json.dumps(response, indent=2, default=str))
