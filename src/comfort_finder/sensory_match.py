"""Sensory match between a venue and a user's stated sensitivities."""

from __future__ import annotations

from comfort_finder.models import SensoryCategoryMatch, SensoryMatch, UserPreferences, Venue
from comfort_finder.tables import (
    AMBIANCE_SCORES,
    CATEGORY_WEIGHTS,
    NOISE_DEFAULT,
    NOISE_SCORES,
    is_upscale,
    round_half_up,
)

DEFAULT_SENSORY_SCORE = 50
AMBIANCE_FLOOR = 65


def calculate_sensory_match(venue: Venue, preferences: UserPreferences | None = None) -> SensoryMatch:
    """Per-category match (noise, lighting, space, ambiance, sensory) plus a weighted overall."""
    prefs = preferences or UserPreferences()
    ambiance = [a.lower() for a in venue.ambiance]
    noise_level = venue.noise_level or "average"

    noise = _noise_match(noise_level, prefs.noise_sensitivity)
    lighting = _lighting_match(venue, ambiance, prefs.light_sensitivity)
    space = _space_match(venue, prefs.spaciousness_preference)
    ambiance_score = _ambiance_match(ambiance)
    sensory = _sensory_score(venue)

    breakdown = {
        "noise": SensoryCategoryMatch(
            score=noise,
            user_preference=prefs.noise_sensitivity,
            venue_level=noise_level,
            match=match_level(noise),
            description=_noise_description(noise_level),
        ),
        "lighting": SensoryCategoryMatch(
            score=lighting,
            user_preference=prefs.light_sensitivity,
            venue_level=_lighting_level(venue, ambiance),
            match=match_level(lighting),
            description=_lighting_description(venue, ambiance),
        ),
        "space": SensoryCategoryMatch(
            score=space,
            user_preference=prefs.spaciousness_preference,
            venue_level=_space_level(venue),
            match=match_level(space),
            description=_space_description(venue),
        ),
        "ambiance": SensoryCategoryMatch(
            score=ambiance_score,
            user_preference=3,
            venue_level=ambiance[0] if ambiance else "casual",
            match=match_level(ambiance_score),
            description=_ambiance_description(ambiance),
        ),
        "sensory": SensoryCategoryMatch(
            score=sensory,
            user_preference=3,
            venue_level="comfortable" if sensory >= 70 else "standard",
            match=match_level(sensory),
            description=_sensory_description(sensory),
        ),
    }

    overall = round_half_up(sum(
        (breakdown[key].score if key in breakdown else 50) * weight
        for key, weight in CATEGORY_WEIGHTS.items()
    ))
    return SensoryMatch(overall=overall, breakdown=breakdown)


def match_level(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 65:
        return "good"
    if score >= 50:
        return "moderate"
    return "poor"


# ---- Per-category scores ----

def _noise_match(noise_level: str, sensitivity: int) -> int:
    base = NOISE_SCORES.get(noise_level, NOISE_DEFAULT)
    if sensitivity >= 4 and noise_level == "quiet":
        return 100
    if sensitivity >= 4 and noise_level == "loud":
        return 20
    if sensitivity <= 2 and noise_level != "quiet":
        return base + 10
    return base


def _lighting_match(venue: Venue, ambiance: list[str], sensitivity: int) -> int:
    base = 60
    if "intimate" in ambiance or "romantic" in ambiance:
        base = 90
    if "cozy" in ambiance:
        base = 80
    if is_upscale(venue.price):
        base = max(base, 75)

    if sensitivity >= 4 and base >= 80:
        return 95
    if sensitivity >= 4 and base < 60:
        return 40
    return base


def _space_match(venue: Venue, preference: int) -> int:
    base = 80 if is_upscale(venue.price) else 60
    if venue.reservations:
        base += 10

    if preference >= 4 and base >= 75:
        return 90
    if preference <= 2:
        return base + 10  # cozy is fine
    return min(base, 100)


def _ambiance_match(ambiance: list[str]) -> int:
    score = AMBIANCE_FLOOR
    for tag in ambiance:
        if tag in AMBIANCE_SCORES:
            score = max(score, AMBIANCE_SCORES[tag])
    return score


def _sensory_score(venue: Venue) -> int:
    analysis = venue.review_analysis
    if analysis and "sensory" in analysis.breakdown:
        return analysis.breakdown["sensory"].score
    return DEFAULT_SENSORY_SCORE


# ---- Inferred levels and descriptions ----

def _lighting_level(venue: Venue, ambiance: list[str]) -> str:
    if "intimate" in ambiance or "romantic" in ambiance:
        return "dim"
    if "cozy" in ambiance:
        return "soft"
    if is_upscale(venue.price):
        return "ambient"
    return "standard"


def _space_level(venue: Venue) -> str:
    if is_upscale(venue.price):
        return "spacious"
    if venue.reservations:
        return "comfortable"
    return "standard"


def _noise_description(noise_level: str) -> str:
    return {
        "quiet": "Known for a peaceful, quiet atmosphere",
        "average": "Moderate noise levels typical for this type of venue",
        "loud": "Can get noisy, especially during peak hours",
    }.get(noise_level, "Noise levels vary")


def _lighting_description(venue: Venue, ambiance: list[str]) -> str:
    if "intimate" in ambiance:
        return "Soft, intimate lighting creates a relaxed mood"
    if "romantic" in ambiance:
        return "Romantic dim lighting, easy on the eyes"
    if is_upscale(venue.price):
        return "Well-designed ambient lighting"
    return "Standard lighting typical for this venue type"


def _space_description(venue: Venue) -> str:
    if is_upscale(venue.price):
        return "More spacious layout with room to breathe"
    if venue.reservations:
        return "Takes reservations, reducing crowding"
    return "Standard seating arrangement"


def _ambiance_description(ambiance: list[str]) -> str:
    if "intimate" in ambiance:
        return "Intimate, quiet atmosphere"
    if "cozy" in ambiance:
        return "Cozy, comfortable environment"
    if "casual" in ambiance:
        return "Relaxed, casual vibe"
    return "Pleasant atmosphere"


def _sensory_description(score: int) -> str:
    if score >= 70:
        return "Reviews mention comfortable sensory environment"
    if score >= 50:
        return "Standard sensory experience"
    return "Some sensory concerns noted in reviews"
