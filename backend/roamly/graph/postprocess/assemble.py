import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DAY_COLORS = (
    "hsl(153, 44%, 17%)",
    "hsl(210, 60%, 45%)",
    "hsl(28, 89%, 67%)",
    "hsl(340, 65%, 47%)",
    "hsl(262, 52%, 47%)",
    "hsl(173, 58%, 39%)",
    "hsl(43, 96%, 56%)",
)

_CLOCK_FORMATS = ("%I:%M %p", "%I %p", "%I:%M%p", "%I%p", "%H:%M")


def day_color(position: int) -> str:
    """Color for the day at zero-based ``position``."""
    return DAY_COLORS[position % len(DAY_COLORS)]


def parse_clock(value: Any) -> Optional[int]:
    """Minutes after midnight for strings like '9:00 AM', '9 AM' or '09:00'."""
    if not isinstance(value, str):
        return None
    text = value.strip().upper()
    for fmt in _CLOCK_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.hour * 60 + parsed.minute
    return None


def _warn_if_unordered(day: Dict[str, Any]) -> None:
    times = [parse_clock(stop.get("time")) for stop in day.get("stops") or [] if isinstance(stop, dict)]
    known = [t for t in times if t is not None]
    if any(later < earlier for earlier, later in zip(known, known[1:])):
        logger.warning("Day %s stops are not in time order: %s", day.get("day"), [s.get("time") for s in day.get("stops") or []])


def assemble_itinerary(itinerary: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Attach the display color to each day, in order. Nothing else is changed;
    ordering problems are only logged.
    """
    assembled = []
    for position, day in enumerate(itinerary):
        _warn_if_unordered(day)
        assembled.append({**day, "color": day_color(position)})
    return assembled
