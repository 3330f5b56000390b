import re
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date
from typing import Any, Dict, List, Optional, Union

# Preset trip lengths offered by the chat UI.
DAY_PRESETS: Dict[str, int] = {
    "day trip": 1,
    "weekend": 3,
    "full week": 7,
}
DEFAULT_DAYS = 3

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

DaysValue = Union[int, float, str, None]


def resolve_days(days: DaysValue, start_date: Optional[date] = None, end_date: Optional[date] = None) -> int:
    """Resolve the requested duration to a positive day count.

    Numbers are taken as-is, the UI presets map to 1/3/7, and free text uses its
    leading integer ("5 days" -> 5). With no usable duration an explicit date
    range decides (inclusive); otherwise the trip defaults to 3 days.
    """
    resolved: Optional[int] = None
    if isinstance(days, bool):
        resolved = None
    elif isinstance(days, (int, float)):
        resolved = int(days)
    elif isinstance(days, str):
        key = days.strip().lower()
        if key in DAY_PRESETS:
            resolved = DAY_PRESETS[key]
        else:
            match = _LEADING_INT.match(key)
            resolved = int(match.group(1)) if match else None

    if (resolved is None or resolved < 1) and days in (None, "") and start_date and end_date:
        resolved = (end_date - start_date).days + 1

    if resolved is None or resolved < 1:
        return DEFAULT_DAYS
    return resolved


class TripRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    origin: str = Field(default="", alias="from")
    destination: str = Field(default="", alias="to")
    days: DaysValue = None
    budget: Optional[str] = None
    mode: Optional[str] = None
    interests: List[str] = []
    pace: Optional[str] = None
    must_sees: Union[str, List[str], None] = Field(default=None, alias="mustSees")
    adjustment_request: Optional[str] = Field(default=None, alias="adjustmentRequest")
    current_itinerary: Optional[Any] = Field(default=None, alias="currentItinerary")
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")

    @model_validator(mode="after")
    def _check_date_range(self) -> "TripRequest":
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("startDate and endDate must be provided together")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    @property
    def resolved_days(self) -> int:
        return resolve_days(self.days, self.start_date, self.end_date)

    @property
    def has_dates(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def is_adjustment(self) -> bool:
        return bool(self.adjustment_request and self.adjustment_request.strip())


class StayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    origin: str = Field(default="", alias="from")
    destination: str = Field(default="", alias="to")
    days: DaysValue = None
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    budget_vibe: Optional[str] = Field(default=None, alias="budgetVibe")
    trip_budget: Optional[str] = Field(default=None, alias="tripBudget")
    itinerary: Optional[Any] = None
    preferences: Optional[Dict[str, Any]] = None

    @property
    def resolved_days(self) -> int:
        return resolve_days(self.days, self.start_date, self.end_date)

    @property
    def budget_label(self) -> str:
        return self.budget_vibe or self.trip_budget or "Balanced"


class DestinationDetailsRequest(BaseModel):
    name: str
    lat: Optional[float] = None
    lng: Optional[float] = None
