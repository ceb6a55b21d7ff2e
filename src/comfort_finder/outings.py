"""Outing helpers: comfort aggregation, durations and stop suggestions."""

from __future__ import annotations

import random
import string
import time
from collections.abc import Sequence
from datetime import date, datetime, timezone

from comfort_finder.models import Outing, Stop, StopType
from comfort_finder.tables import round_half_up

DEFAULT_STOP_DURATION = 60
FOLLOW_UP_STOP_TYPES = ["dessert", "walk", "second coffee"]
_SUGGESTION_ORDER = [
    StopType.COFFEE, StopType.LUNCH, StopType.DINNER,
    StopType.DRINKS, StopType.ACTIVITY, StopType.SHOPPING,
]


def _as_stops(stops: Sequence[Stop | dict] | None) -> list[Stop]:
    return [s if isinstance(s, Stop) else Stop.model_validate(s) for s in stops or []]


def stop_comfort(stop: Stop) -> int:
    """The linked venue's score, else the stop's cached score, else 0."""
    return (stop.venue.comfort_score if stop.venue else None) or stop.comfort_score or 0


def calculate_outing_comfort(stops: Sequence[Stop | dict] | None) -> int:
    """Rounded mean of the stops' comfort scores.

    Stops without a positive score are left out of the average (not counted
    as zero); returns 0 when no stop has one.
    """
    scores = [s for s in (stop_comfort(stop) for stop in _as_stops(stops)) if s > 0]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def calculate_total_duration(stops: Sequence[Stop | dict] | None) -> int:
    return sum(stop.duration or DEFAULT_STOP_DURATION for stop in _as_stops(stops))


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}min" if mins else f"{hours}h"


def suggested_stop_types(existing: Sequence[Stop | dict] | None) -> list[str]:
    """Up to three stop types the outing doesn't have yet."""
    used = {(stop.type or "").lower() for stop in _as_stops(existing)}
    suggested = [t.value for t in _SUGGESTION_ORDER if t.value not in used]
    if not suggested:
        return list(FOLLOW_UP_STOP_TYPES)
    return suggested[:3]


def generate_outing_id(rng: random.Random | None = None) -> str:
    suffix = "".join((rng or random).choices(string.ascii_lowercase + string.digits, k=9))
    return f"outing-{int(time.time() * 1000)}-{suffix}"


def build_outing(data: Outing | dict, rng: random.Random | None = None) -> Outing:
    """Normalize an outing for saving: fill defaults and recompute ``total_comfort``."""
    raw = data.model_dump() if isinstance(data, Outing) else dict(data)
    stops = _as_stops(raw.get("stops"))
    now = datetime.now(timezone.utc).isoformat()

    return Outing(
        id=raw.get("id") or generate_outing_id(rng),
        name=raw.get("name") or "My Outing",
        date=raw.get("date") or date.today().isoformat(),
        stops=stops,
        total_comfort=calculate_outing_comfort(stops),
        created_at=raw.get("created_at") or now,
        updated_at=now,
    )
