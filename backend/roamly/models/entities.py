# roamly/models/entities.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class GeoAnchor(BaseModel):
    """A resolved place used as the geographic reference for a trip.

    Only the geocoder builds these; a missing anchor is represented by ``None``.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    lat: float
    lng: float


class GeoOutlier(BaseModel):
    """A stop that landed too far from the destination anchor."""
    day: int
    name: str
    distance_km: float


class Stop(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: str
    time: str
    name: str
    description: str
    hours: str
    cost: str
    drive_from_prev: Optional[str] = Field(default=None, alias="driveFromPrev")
    # Null means unverifiable and the geo check skips the stop. Anything else must be a real coordinate.
    lat: Optional[float] = Field(default=None, strict=True, ge=-90, le=90, allow_inf_nan=False)
    lng: Optional[float] = Field(default=None, strict=True, ge=-180, le=180, allow_inf_nan=False)
    tags: List[str] = Field(min_length=1)


class DayPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    day: int
    title: str
    subtitle: str
    total_driving: str = Field(alias="totalDriving")
    estimated_cost: str = Field(alias="estimatedCost")
    stops: List[Stop]
    color: Optional[str] = None
