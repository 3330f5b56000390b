from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from roamly.models.entities import GeoAnchor, GeoOutlier
from roamly.models.trip_request import TripRequest


class Stage(str, Enum):
    LOCATING = "locating"
    DRAFTING = "drafting"
    VERIFYING = "verifying"
    CORRECTING = "correcting"
    REVERIFYING = "reverifying"
    DONE = "done"
    FAILED = "failed"


class RunState(BaseModel):
    request: TripRequest
    days: int = 0
    destination: str = ""

    origin_anchor: Optional[GeoAnchor] = None
    destination_anchor: Optional[GeoAnchor] = None
    single_destination: bool = False

    system_prompt: str = ""
    user_prompt: str = ""

    itinerary: List[Dict[str, Any]] = Field(default_factory=list)
    outliers: List[GeoOutlier] = Field(default_factory=list)
    gateway_calls: int = 0

    stage: Stage = Stage.LOCATING
    logs: List[dict] = Field(default_factory=list)
