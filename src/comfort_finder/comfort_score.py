"""Comfort score calculator.

Combines a venue's noise level, ambiance, categories, price and review text
into a single 0-100 score. Higher means calmer.
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence

from comfort_finder.models import ComfortResult, ScoreFactor, UserPreferences, Venue
from comfort_finder.tables import (
    AMBIANCE_DEFAULT,
    AMBIANCE_SCORES,
    CATEGORY_BASE_SCORES,
    CATEGORY_DEFAULT,
    NEGATIVE_KEYWORDS,
    NOISE_DEFAULT,
    NOISE_SCORES,
    POSITIVE_KEYWORDS,
    clamp,
    clamp_score,
    comfort_label,
)

DEFAULT_NOISE_WEIGHT = 0.6
AMBIANCE_WEIGHT = 0.3
CATEGORY_WEIGHT = 0.2
REVIEW_HIT_WEIGHT = 3
REVIEW_IMPACT_CAP = 20
FLAT_BONUS = 5

FALLBACK_REASON = "A comfortable spot that matches your preferences"

_NON_LETTERS = re.compile(r"[^a-z]")


def noise_score(noise_level: str | None) -> int:
    return NOISE_SCORES.get((noise_level or "").lower(), NOISE_DEFAULT)


def ambiance_score(tag: str) -> int:
    return AMBIANCE_SCORES.get(tag.lower(), AMBIANCE_DEFAULT)


def category_score(aliases: Sequence[str]) -> int:
    """Best matching category score (substring match on letters-only aliases)."""
    best = CATEGORY_DEFAULT
    for alias in aliases:
        cleaned = _NON_LETTERS.sub("", alias.lower())
        for key, value in CATEGORY_BASE_SCORES.items():
            if key in cleaned:
                best = max(best, value)
                break
    return best


def analyze_review_text(text: str) -> dict[str, list[str]]:
    """Which positive and negative comfort keywords appear in ``text``."""
    lower = text.lower()
    return {
        "positive": [k for k in POSITIVE_KEYWORDS if k in lower],
        "negative": [k for k in NEGATIVE_KEYWORDS if k in lower],
    }


def calculate_comfort_score(venue: Venue, preferences: UserPreferences | None = None) -> ComfortResult:
    """Score a venue from 0 (very lively) to 100 (very calm).

    Starts at a neutral 50 and adds one delta per signal. Every delta that is
    applied is recorded in ``factors`` (in application order).
    """
    score = 50.0
    factors: list[ScoreFactor] = []

    # 1. Noise level (major factor)
    if venue.noise_level:
        noise = noise_score(venue.noise_level)
        weight = preferences.noise_sensitivity / 5 if preferences else DEFAULT_NOISE_WEIGHT
        score += (noise - 50) * weight
        factors.append(ScoreFactor(factor="noise", impact=noise - 50))

    # 2. Ambiance
    if venue.ambiance:
        scores = [ambiance_score(tag) for tag in venue.ambiance]
        avg = sum(scores) / len(scores)
        score += (avg - 50) * AMBIANCE_WEIGHT
        factors.append(ScoreFactor(factor="ambiance", impact=avg - 50))

    # 3. Category
    if venue.categories:
        cat = category_score(venue.category_aliases)
        score += (cat - 50) * CATEGORY_WEIGHT
        factors.append(ScoreFactor(factor="category", impact=cat - 50))

    # 4. Review text
    if venue.reviews is not None:
        found = analyze_review_text(" ".join(r.text for r in venue.reviews))
        impact = (len(found["positive"]) - len(found["negative"])) * REVIEW_HIT_WEIGHT
        score += clamp(impact, -REVIEW_IMPACT_CAP, REVIEW_IMPACT_CAP)
        factors.append(ScoreFactor(factor="reviews", impact=impact))

    # 5. Outdoor seating gives an escape option
    if venue.outdoor_seating or _extra_attribute(venue, "outdoor_seating"):
        score += FLAT_BONUS
        factors.append(ScoreFactor(factor="outdoor", impact=FLAT_BONUS))

    # 6. Reservations mean a more controlled environment
    if venue.reservations or _extra_attribute(venue, "reservations"):
        score += FLAT_BONUS
        factors.append(ScoreFactor(factor="reservations", impact=FLAT_BONUS))

    # 7. Pricier places tend to be quieter
    if venue.price and len(venue.price) >= 3:
        score += FLAT_BONUS
        factors.append(ScoreFactor(factor="price", impact=FLAT_BONUS))

    final = clamp_score(score)
    return ComfortResult(score=final, factors=factors, label=comfort_label(final))


def _extra_attribute(venue: Venue, name: str):
    attributes = getattr(venue, "attributes", None)
    if isinstance(attributes, dict):
        return attributes.get(name)
    return None


# ---- Recommendation reasons ----

def recommendation_candidates(venue: Venue, preferences: UserPreferences | None = None) -> list[str]:
    """Every reason that applies to this venue, in a stable order."""
    reasons = []
    ambiance = [a.lower() for a in venue.ambiance]

    if venue.noise_level == "quiet":
        reasons.append("Known for its peaceful, quiet atmosphere")
    if "intimate" in ambiance or "cozy" in ambiance:
        reasons.append("Intimate setting perfect for focused conversation")
    if venue.outdoor_seating:
        reasons.append("Outdoor seating available for when you need fresh air")
    if venue.reservations:
        reasons.append("Takes reservations so you can plan your visit")
    if preferences and preferences.noise_sensitivity >= 4 and (venue.comfort_score or 0) >= 70:
        reasons.append("Highly rated for low noise levels")

    return reasons


def pick_one(candidates: Sequence[str], rng: random.Random | None = None) -> str | None:
    """Pick one candidate uniformly at random; ``rng`` makes it reproducible."""
    if not candidates:
        return None
    return (rng or random).choice(list(candidates))


def generate_recommendation_reason(
    venue: Venue,
    preferences: UserPreferences | None = None,
    rng: random.Random | None = None,
) -> str:
    return pick_one(recommendation_candidates(venue, preferences), rng) or FALLBACK_REASON
