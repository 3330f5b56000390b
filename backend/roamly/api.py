
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from roamly.config import get_settings
from roamly.graph.agents import destination_details_agent, stay_agent
from roamly.graph.build_graph import generate_itinerary
from roamly.integrations.errors import IntegrationError, PlannerAPIError
from roamly.integrations.geocoding_client import MapboxGeocoder
from roamly.integrations.openai_client import ModelGateway
from roamly.models.trip_request import DestinationDetailsRequest, StayRequest, TripRequest
import logging

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type, x-supabase-client-platform, "
        "x-supabase-client-platform-version, x-supabase-client-runtime, x-supabase-client-runtime-version"
    ),
}

app = FastAPI(
    title="Roamly Planner API",
    description="Chat-driven trip planning: geographically checked day-by-day itineraries",
    version="1.0.0",
)


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer preflight requests and stamp the CORS headers on every response."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


@app.exception_handler(PlannerAPIError)
async def planner_error_handler(request: Request, exc: PlannerAPIError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(IntegrationError)
async def integration_error_handler(request: Request, exc: IntegrationError):
    logger.error(f"Integration unavailable: {exc}")
    return error_response(500, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info("Rejected request to %s: %s", request.url.path, errors)
    return error_response(400, f"Invalid request: {detail}")


def get_gateway() -> ModelGateway:
    return ModelGateway.from_settings()


async def get_geocoder():
    async with MapboxGeocoder.from_settings() as geocoder:
        yield geocoder


@app.get("/")
def root():
    return {
        "message": "Roamly Planner API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "generate_itinerary": "/generate-itinerary",
            "recommend_stays": "/recommend-stays",
            "destination_details": "/get-destination-details",
            "docs": "/docs",
        },
    }


@app.get("/health")
def health():
    return {"status": "healthy", "service": "Roamly Planner"}


@app.post("/generate-itinerary")
async def generate_itinerary_endpoint(
    request: TripRequest,
    gateway: ModelGateway = Depends(get_gateway),
    geocoder: MapboxGeocoder = Depends(get_geocoder),
):
    """
    Generate (or adjust) a day-by-day itinerary.

    - **from** / **to**: origin and destination; equal values plan a single-destination trip
    - **days**: a number, or "Day trip" / "Weekend" / "Full week"
    - **adjustmentRequest** + **currentItinerary**: regenerate a previous plan with a change
    - **startDate** / **endDate**: optional ISO dates, supplied together
    """
    try:
        logger.info(f"Generating itinerary: {request.origin} -> {request.destination} ({request.resolved_days} days)")
        itinerary = await generate_itinerary(request, gateway, geocoder)
        return {"itinerary": itinerary}
    except PlannerAPIError as e:
        logger.warning("Itinerary request failed with %s: %s", e.status_code, e.message)
        return error_response(e.status_code, e.message)
    except Exception as e:
        logger.exception("generate-itinerary error")
        return error_response(500, str(e) or "Unknown error")


@app.post("/recommend-stays")
async def recommend_stays_endpoint(
    request: StayRequest,
    gateway: ModelGateway = Depends(get_gateway),
    geocoder: MapboxGeocoder = Depends(get_geocoder),
):
    try:
        stays = await stay_agent(request, gateway, geocoder)
        return {"stays": stays}
    except PlannerAPIError as e:
        return error_response(e.status_code, e.message)
    except Exception as e:
        logger.exception("recommend-stays error")
        return error_response(500, str(e) or "Unknown error")


@app.post("/get-destination-details")
async def destination_details_endpoint(
    request: DestinationDetailsRequest,
    gateway: ModelGateway = Depends(get_gateway),
):
    try:
        return await destination_details_agent(request, gateway)
    except PlannerAPIError as e:
        return error_response(e.status_code, e.message)
    except Exception as e:
        logger.exception("get-destination-details error")
        return error_response(500, str(e) or "Unknown error")
