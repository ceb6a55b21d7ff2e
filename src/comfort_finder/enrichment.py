"""Venue enrichment.

Takes a raw venue from the search provider and attaches everything the UI
needs: inferred noise level and ambiance, comfort score, attribute chips and
a recommendation reason. When reviews (and optionally an LLM analysis) are
available, they take priority over the inferred signals.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from comfort_finder.claude_analysis import get_claude_attributes, get_claude_recommendation
from comfort_finder.comfort_score import calculate_comfort_score, generate_recommendation_reason
from comfort_finder.models import (
    ClaudeAnalysis,
    ComfortAttribute,
    Review,
    ReviewAnalysis,
    UserPreferences,
    Venue,
)
from comfort_finder.review_analysis import analyze_reviews, extract_comfort_quotes, generate_comfort_summary
from comfort_finder.signals import SignalSource, resolve
from comfort_finder.tables import clamp_score, is_upscale

logger = logging.getLogger(__name__)

MAX_ATTRIBUTES = 4
REVIEW_BLEND_CAP = 0.5

# LLM noise vocabulary -> venue noise levels ("varies" tells us nothing)
_CLAUDE_NOISE = {"quiet": "quiet", "moderate": "average", "loud": "loud"}


# ---- Inference from categories and price ----

def infer_noise_level(venue: Venue) -> str:
    categories = " ".join(venue.category_aliases)
    if any(k in categories for k in ("coffee", "tea", "cafe")):
        return "quiet"
    if any(k in categories for k in ("bar", "pub", "sports")):
        return "loud"
    if is_upscale(venue.price):
        return "quiet"
    return "average"


def infer_ambiance(venue: Venue) -> list[str]:
    return ["intimate"] if is_upscale(venue.price) else ["casual"]


def extract_comfort_attributes(venue: Venue) -> list[ComfortAttribute]:
    """Attribute chips derived from the venue's own fields (max 4)."""
    attributes = []
    ambiance = [a.lower() for a in venue.ambiance]
    categories = " ".join(venue.category_aliases)

    if venue.noise_level == "quiet":
        attributes.append(ComfortAttribute(variant="quiet", label="Quiet"))
    elif venue.noise_level == "average":
        attributes.append(ComfortAttribute(variant="quiet", label="Moderate"))

    if "intimate" in ambiance or "romantic" in ambiance:
        attributes.append(ComfortAttribute(variant="dim", label="Dim Lighting"))

    if "cozy" in ambiance or "casual" in ambiance:
        attributes.append(ComfortAttribute(variant="cozy", label="Cozy"))

    if venue.outdoor_seating:
        attributes.append(ComfortAttribute(variant="spacious", label="Outdoor Seating"))

    if venue.wifi and venue.wifi not in ("no", "none"):
        attributes.append(ComfortAttribute(variant="wifi", label="WiFi"))
    elif "coffee" in categories or "cafe" in categories:
        attributes.append(ComfortAttribute(variant="wifi", label="WiFi Likely"))

    if is_upscale(venue.price):
        attributes.append(ComfortAttribute(variant="spacious", label="Upscale"))

    return attributes[:MAX_ATTRIBUTES]


# ---- Signal sources ----

def _claude(venue: Venue) -> ClaudeAnalysis | None:
    return venue.claude_analysis


def _claude_noise(venue: Venue) -> str | None:
    analysis = _claude(venue)
    return _CLAUDE_NOISE.get(analysis.noise_level) if analysis and analysis.noise_level else None


def _blended_review_score(venue: Venue) -> int | None:
    analysis = venue.review_analysis
    if not analysis or analysis.confidence <= 0 or venue.comfort_score is None:
        return None
    weight = min(analysis.confidence / 100, REVIEW_BLEND_CAP)
    return clamp_score(venue.comfort_score * (1 - weight) + analysis.sentiment_score * weight)


NOISE_SOURCES = [
    SignalSource("llm", _claude_noise),
    SignalSource("venue", lambda v: v.noise_level),
    SignalSource("category", infer_noise_level),
]

AMBIANCE_SOURCES = [
    SignalSource("venue", lambda v: list(v.ambiance) or None),
    SignalSource("category", infer_ambiance),
]

SCORE_SOURCES = [
    SignalSource("llm", lambda v: _claude(v).comfort_score if _claude(v) else None),
    SignalSource("reviews", _blended_review_score),
    SignalSource("inferred", lambda v: v.comfort_score),
]

REASON_SOURCES = [
    SignalSource("llm", lambda v: get_claude_recommendation(_claude(v))),
    SignalSource("inferred", lambda v: v.recommendation_reason),
]

ATTRIBUTE_SOURCES = [
    SignalSource("llm", lambda v: get_claude_attributes(_claude(v)) or None),
    SignalSource("inferred", extract_comfort_attributes),
]


# ---- Enrichment ----

def enhance_venue(
    venue: Venue,
    preferences: UserPreferences | None = None,
    rng: random.Random | None = None,
) -> Venue:
    """Fill in sensory fields and compute score, reason and chips for one venue."""
    sensed = venue.model_copy(update={
        "noise_level": resolve("noise_level", NOISE_SOURCES, venue),
        "ambiance": resolve("ambiance", AMBIANCE_SOURCES, venue),
    })

    result = calculate_comfort_score(sensed, preferences)
    scored = sensed.model_copy(update={"comfort_score": result.score})
    scored = scored.model_copy(update={
        "recommendation_reason": generate_recommendation_reason(scored, preferences, rng),
    })
    return _apply_priority_signals(scored)


def enrich_with_reviews(
    venue: Venue,
    reviews: Sequence[Review | dict] | None,
    preferences: UserPreferences | None = None,
    rng: random.Random | None = None,
    claude_analysis: ClaudeAnalysis | None = None,
) -> Venue:
    """Detail-view enrichment: keyword analysis, quotes and LLM analysis on top of :func:`enhance_venue`."""
    review_list = [r if isinstance(r, Review) else Review.model_validate(r) for r in reviews or []]
    analysis: ReviewAnalysis = analyze_reviews(review_list)

    # Blend against the inferred score without reviews, never a previously blended one
    bare = venue.model_copy(update={"review_analysis": None, "reviews": None})
    enhanced = enhance_venue(bare, preferences, rng)
    enhanced = enhanced.model_copy(update={
        "reviews": review_list,
        "review_analysis": analysis,
        "comfort_quotes": extract_comfort_quotes(review_list),
        "claude_analysis": claude_analysis or venue.claude_analysis,
    })
    if analysis.confidence > 0:
        enhanced = enhanced.model_copy(update={"review_comfort_summary": generate_comfort_summary(analysis)})

    enriched = _apply_priority_signals(enhanced)
    logger.info(
        "Enriched %s: comfort %s (%d reviews, confidence %d)",
        enriched.name, enriched.comfort_score, analysis.review_count, analysis.confidence,
    )
    return enriched


def enhance_venues(
    venues: Sequence[Venue | dict],
    preferences: UserPreferences | None = None,
    rng: random.Random | None = None,
    limit: int | None = None,
) -> list[Venue]:
    """Enhance a result set and sort it calmest first."""
    enhanced = [
        enhance_venue(v if isinstance(v, Venue) else Venue.model_validate(v), preferences, rng)
        for v in venues
    ]
    enhanced.sort(key=lambda v: v.comfort_score or 0, reverse=True)
    return enhanced[:limit] if limit else enhanced


def _apply_priority_signals(venue: Venue) -> Venue:
    return venue.model_copy(update={
        "comfort_score": resolve("comfort_score", SCORE_SOURCES, venue),
        "recommendation_reason": resolve("recommendation_reason", REASON_SOURCES, venue),
        "comfort_attributes": resolve("comfort_attributes", ATTRIBUTE_SOURCES, venue, default=[])[:MAX_ATTRIBUTES],
    })
