"""Time-of-day comfort predictions.

Predicts when a venue is likely to be calmest from typical busy patterns for
its category.
"""

from __future__ import annotations

from comfort_finder.models import BestTimeWindow, HourlyComfort, TimePrediction, Venue

_CAFE = {"quiet": [6, 7, 14, 15, 16], "moderate": [8, 9, 13, 17], "busy": [10, 11, 12]}
_RESTAURANT = {"quiet": [11, 14, 15, 16, 21, 22], "moderate": [12, 13, 17, 20], "busy": [18, 19]}

# Typical busy patterns by category (24h hours)
TIME_PATTERNS: dict[str, dict[str, list[int]]] = {
    "coffee": _CAFE,
    "cafes": _CAFE,
    "restaurants": _RESTAURANT,
    "italian": _RESTAURANT,
    "japanese": _RESTAURANT,
    "sushi": _RESTAURANT,
    "breakfast_brunch": {"quiet": [7, 8, 14, 15], "moderate": [9, 13], "busy": [10, 11, 12]},
    "bars": {"quiet": [16, 17], "moderate": [18, 19], "busy": [20, 21, 22, 23]},
    "pubs": {"quiet": [15, 16, 17], "moderate": [18, 19], "busy": [20, 21, 22]},
    "tea": {"quiet": [10, 11, 13, 14, 15, 16, 17], "moderate": [12], "busy": []},
    "default": {"quiet": [14, 15, 16], "moderate": [11, 12, 13, 17], "busy": [18, 19, 20]},
}

# Weekend modifiers: shift the busy window later, or keep it busy for longer
WEEKEND_ADJUSTMENTS: dict[str, dict[str, int]] = {
    "breakfast_brunch": {"shift_busy": 1},
    "bars": {"extend_busy": 2},
    "restaurants": {"extend_busy": 1},
}

QUIET_SCORE = 85
MODERATE_SCORE = 60
BUSY_SCORE = 35
EXTENDED_BUSY_SCORE = 40

FIRST_HOUR = 6
LAST_WINDOW_HOUR = 22
LAST_HOUR = 23

_TIME_COLORS = {"quiet": "#5a7a52", "moderate": "#c9b84a", "busy": "#c95a4a"}


def get_venue_pattern(venue: Venue) -> tuple[dict[str, list[int]], str]:
    """Return ``(pattern, category)`` for the venue; exact alias match first, then partial."""
    aliases = venue.category_aliases

    for alias in aliases:
        if alias in TIME_PATTERNS:
            return TIME_PATTERNS[alias], alias

    for alias in aliases:
        for key in TIME_PATTERNS:
            if alias in key or key in alias:
                return TIME_PATTERNS[key], key

    return TIME_PATTERNS["default"], "default"


def predict_comfort_by_time(venue: Venue, hour: int, is_weekend: bool = False) -> TimePrediction:
    """Predict how calm a venue is at ``hour`` (0-23)."""
    pattern, category = get_venue_pattern(venue)

    level, score = "moderate", MODERATE_SCORE
    if hour in pattern["quiet"]:
        level, score = "quiet", QUIET_SCORE
    elif hour in pattern["busy"]:
        level, score = "busy", BUSY_SCORE

    adjustment = WEEKEND_ADJUSTMENTS.get(category) if is_weekend else None
    if adjustment:
        shift = adjustment.get("shift_busy")
        if shift and hour - shift in pattern["busy"]:
            level, score = "busy", BUSY_SCORE
        extend = adjustment.get("extend_busy")
        if extend and hour - extend in pattern["busy"]:
            level, score = "busy", EXTENDED_BUSY_SCORE

    base_comfort = venue.comfort_score or 60
    if base_comfort >= 75:
        score = min(100, score + 10)
    elif base_comfort < 50:
        score = max(0, score - 10)

    return TimePrediction(level=level, score=score, confidence=40 if category == "default" else 70)


def get_best_times(venue: Venue) -> list[BestTimeWindow]:
    """Group consecutive quiet hours (6am-10pm) into visiting windows."""
    pattern, _ = get_venue_pattern(venue)
    windows: list[BestTimeWindow] = []
    start: int | None = None

    for hour in range(FIRST_HOUR, LAST_WINDOW_HOUR + 1):
        quiet = hour in pattern["quiet"]
        if quiet and start is None:
            start = hour
        elif not quiet and start is not None:
            windows.append(_window(start, hour - 1))
            start = None

    if start is not None:
        windows.append(_window(start, LAST_WINDOW_HOUR))

    return windows


def _window(start: int, end: int) -> BestTimeWindow:
    return BestTimeWindow(start_hour=start, end_hour=end, label=format_time_window(start, end), score=QUIET_SCORE)


def get_hourly_comfort(venue: Venue, is_weekend: bool = False) -> list[HourlyComfort]:
    return [
        HourlyComfort(hour=hour, label=format_hour(hour), **predict_comfort_by_time(venue, hour, is_weekend).model_dump())
        for hour in range(FIRST_HOUR, LAST_HOUR + 1)
    ]


def get_time_recommendation(venue: Venue) -> str:
    best = get_best_times(venue)

    if not best:
        return "This venue tends to have consistent crowd levels throughout the day."
    if len(best) == 1:
        return f"Best visited {best[0].label} when it's typically quietest."
    return f"Calmest {best[0].label} or {best[1].label}."


def format_time_window(start_hour: int, end_hour: int) -> str:
    if start_hour == end_hour:
        return f"around {format_hour(start_hour)}"
    return f"{format_hour(start_hour)}-{format_hour(end_hour)}"


def format_hour(hour: int) -> str:
    """12-hour label, e.g. ``7am``, ``12pm``, ``9pm``."""
    if hour in (0, 24):
        return "12am"
    if hour == 12:
        return "12pm"
    if hour < 12:
        return f"{hour}am"
    return f"{hour - 12}pm"


def comfort_time_color(level: str) -> str:
    return _TIME_COLORS.get(level, "#9a9a9a")
