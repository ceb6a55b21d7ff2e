"""Follow-up detection and filtering.

Decides whether a chat message refines the previous results ("any of them
with outdoor seating?") or starts a new search, and applies the refinement
to the previous venue list.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from comfort_finder.models import Confidence, FilterResult, FollowUpClassification, Venue

_I = re.IGNORECASE

# Patterns that indicate filtering intent (refining existing results)
FILTER_PATTERNS: list[re.Pattern] = [re.compile(p, _I) for p in [
    # Attribute-based
    r"\b(with|has|have|got)\s+(outdoor|patio|terrace|rooftop)\s*(seating|area|space)?",
    r"\boutdoor\s*(seating|dining|patio|area)?\b",
    r"\b(with|has|have|got)\s+(wifi|wi-fi|internet)",
    r"\b(with|has|have|got)\s+reservations?\b",
    r"\b(takes?|accepts?)\s+reservations?\b",
    r"\bopen\s+(now|late|early|24)",
    r"\b(cheaper|less expensive|budget|affordable)\b",
    r"\b(fancier|nicer|upscale|high-end)\b",
    r"\b(closer|nearby|nearer|walking distance)\b",
    r"\b(quieter|more quiet|less noisy|calmer)\b",
    r"\b(louder|more lively|energetic)\b",
    r"\bhigher\s+rated\b",
    r"\bbetter\s+reviews?\b",

    # References to the previous results
    r"\b(which|what about|how about)\s+(one|ones|of these|of those|them)\b",
    r"\bany\s+(of\s+)?(them|these|those)\s+(with|have|has|got|open|take)",
    r"\bdo\s+any\s+(of\s+)?(them|these|those)\b",
    r"\bwhat\s+about\s+(the\s+)?(other|rest|remaining)\b",
    r"\banything\s+(with|that\s+has|quieter|cheaper|closer|open)",
    r"\bany\s+(other\s+)?options?\s+(with|that)",

    # Comparatives over the existing set
    r"\bwhich\s+(is|are|one|ones)\s+(the\s+)?(quietest|cheapest|closest|best|highest)",
    r"\bthe\s+(quietest|cheapest|closest|best|most)\s+(one|option|place|spot)",

    # Exclusions
    r"\b(without|no|not|exclude)\s+(outdoor|patio|music|tv|sports)",
    r"\bnot\s+too\s+(loud|noisy|crowded|busy|expensive)",
]]

# Patterns that indicate a new search
NEW_SEARCH_PATTERNS: list[re.Pattern] = [re.compile(p, _I) for p in [
    # Different cuisine/type
    r"\b(find|show|search|look for|get|recommend)\s+(me\s+)?(a|an|some)\b",
    r"\bhow about\s+(a|an|some)\s+(different|other|new)\b",
    r"\bwhat about\s+(mexican|italian|chinese|japanese|thai|indian|french|korean|vietnamese)",
    r"\bswitch to\b",
    r"\binstead\s+(of|,)\s*(find|show|search|get)",

    # Explicitly new
    r"\b(new|different|another)\s+(search|type|cuisine|kind|category)",
    r"\bstart\s+(over|fresh|again)\b",
    r"\bforget\s+(that|those|them)\b",

    # Location change
    r"\bin\s+(a\s+)?different\s+(area|neighborhood|location|city)",
    r"\bsomewhere\s+else\b",
]]


def _is_set(value: Any) -> bool:
    """A provider attribute counts as present when it is True or a string other than no/none."""
    return value is True or (isinstance(value, str) and value not in ("no", "none"))


@dataclass
class AttributeFilter:
    """A named refinement such as ``outdoor_seating`` or ``price_low``."""

    name: str
    label: str
    patterns: list[re.Pattern]
    venue_field: str | None = None
    fallback_field: str | None = None
    search_reviews: bool = False
    score_filter: Callable[[Venue], bool] | None = None

    def matches_message(self, message: str) -> bool:
        return any(p.search(message) for p in self.patterns)

    def accepts(self, venue: Venue) -> bool:
        if self.score_filter is not None:
            return self.score_filter(venue)

        if self.venue_field and _is_set(get_nested_value(venue, self.venue_field)):
            return True
        if self.fallback_field and _is_set(getattr(venue, self.fallback_field, None)):
            return True

        for attr in venue.comfort_attributes:
            label = (attr.label or "").lower()
            variant = (attr.variant or "").lower()
            if any(p.search(label) or p.search(variant) for p in self.patterns):
                return True

        if self.search_reviews:
            text = _searchable_text(venue)
            if any(p.search(text) for p in self.patterns):
                return True

        return False


def _searchable_text(venue: Venue) -> str:
    parts = [
        venue.recommendation_reason or "",
        (venue.claude_analysis.summary if venue.claude_analysis else None) or "",
        venue.review_comfort_summary or "",
        *[r.text or "" for r in venue.reviews or []],
        *[q.text or "" for q in venue.comfort_quotes],
    ]
    return " ".join(parts).lower()


def _patterns(*sources: str) -> list[re.Pattern]:
    return [re.compile(s, _I) for s in sources]


ATTRIBUTE_FILTERS: dict[str, AttributeFilter] = {f.name: f for f in [
    AttributeFilter(
        name="outdoor_seating",
        label="outdoor seating",
        patterns=_patterns(r"outdoor", r"patio", r"terrace", r"rooftop", r"outside", r"al\s*fresco"),
        venue_field="attributes.outdoor_seating",
        fallback_field="outdoor_seating",
        search_reviews=True,  # providers often only mention it in review text
    ),
    AttributeFilter(
        name="reservations",
        label="reservations",
        patterns=_patterns(r"reservations?", r"book(ing)?"),
        venue_field="attributes.restaurants_reservations",
        fallback_field="reservations",
    ),
    AttributeFilter(
        name="wifi",
        label="WiFi",
        patterns=_patterns(r"wifi", r"wi-fi", r"internet"),
        venue_field="attributes.wifi",
        fallback_field="wifi",
    ),
    AttributeFilter(
        name="quiet",
        label="quieter atmosphere",
        patterns=_patterns(r"quiet", r"calm", r"peaceful", r"less\s+noisy", r"not\s+(too\s+)?loud"),
        score_filter=lambda v: (v.comfort_score or 0) >= 60 or v.noise_level == "quiet",
    ),
    AttributeFilter(
        name="price_low",
        label="budget-friendly prices",
        patterns=_patterns(r"cheap", r"budget", r"affordable", r"inexpensive", r"less\s+expensive"),
        score_filter=lambda v: v.price in ("$", "$$"),
    ),
    AttributeFilter(
        name="price_high",
        label="upscale dining",
        patterns=_patterns(r"fancy", r"upscale", r"high-end", r"nice", r"splurge"),
        score_filter=lambda v: v.price in ("$$$", "$$$$"),
    ),
    AttributeFilter(
        name="open_now",
        label="currently open",
        patterns=_patterns(r"open\s+now", r"currently\s+open", r"still\s+open"),
        venue_field="hours[0].is_open_now",
        fallback_field="is_open_now",
    ),
    AttributeFilter(
        name="higher_rated",
        label="higher ratings",
        patterns=_patterns(r"higher\s+rated", r"better\s+review", r"top\s+rated", r"best\s+rated"),
        score_filter=lambda v: (v.rating or 0) >= 4.5,
    ),
]}


def _new_search(**extra) -> FollowUpClassification:
    return FollowUpClassification(is_filter=False, is_new_search=True, confidence=Confidence.HIGH, **extra)


def analyze_follow_up(message: str | None, has_existing_results: bool = False) -> FollowUpClassification:
    """Classify a chat message as a refinement of the previous results or a new search."""
    if not message or not message.strip() or not has_existing_results:
        return _new_search()

    normalized = message.lower().strip()

    if any(p.search(normalized) for p in NEW_SEARCH_PATTERNS):
        return _new_search()

    matched = sum(1 for p in FILTER_PATTERNS if p.search(normalized))
    detected = [name for name, f in ATTRIBUTE_FILTERS.items() if f.matches_message(normalized)]

    confidence = Confidence.LOW
    if matched >= 2 or detected:
        confidence = Confidence.HIGH
    elif matched == 1:
        confidence = Confidence.MEDIUM

    # Short messages that name an attribute are almost always refinements
    if len(normalized.split()) <= 6 and detected:
        confidence = Confidence.HIGH

    is_filter = matched > 0 or bool(detected)
    return FollowUpClassification(
        is_filter=is_filter,
        is_new_search=not is_filter,
        detected_filters=detected,
        matched_patterns=matched,
        confidence=confidence,
    )


def filter_venues(venues: Sequence[Venue | dict] | None, filter_names: Sequence[str] | None) -> FilterResult:
    """Apply named filters to the previous results (AND, in order).

    ``applied`` lists the filters that actually removed something, so
    ``no_match`` can tell "everything was excluded" from "filters didn't matter".
    """
    candidates = [v if isinstance(v, Venue) else Venue.model_validate(v) for v in venues or []]
    if not candidates or not filter_names:
        return FilterResult(filtered=candidates)

    applied = []
    for name in filter_names:
        attribute_filter = ATTRIBUTE_FILTERS.get(name)
        if attribute_filter is None:
            continue

        before = len(candidates)
        candidates = [v for v in candidates if attribute_filter.accepts(v)]
        if len(candidates) < before:
            applied.append(name)

    return FilterResult(
        filtered=candidates,
        applied=applied,
        no_match=not candidates and bool(applied),
    )


def get_nested_value(obj: Any, path: str) -> Any:
    """Resolve a dotted/bracketed path such as ``hours[0].is_open_now``.

    Works across dicts, lists and pydantic models (including extra fields).
    Returns None when any step is missing.
    """
    current = obj
    for part in re.sub(r"\[(\d+)\]", r".\1", path).split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, (list, tuple)):
            if not part.isdigit() or int(part) >= len(current):
                return None
            current = current[int(part)]
        elif isinstance(current, BaseModel):
            current = getattr(current, part, None)
        else:
            return None
    return current


def generate_filter_response(
    filtered: Sequence[Venue],
    applied: Sequence[str],
    original: Sequence[Venue],
) -> str:
    """Chat reply describing the filtered results."""
    labels = " and ".join(
        ATTRIBUTE_FILTERS[name].label if name in ATTRIBUTE_FILTERS else name
        for name in applied
    )

    if not filtered:
        return (
            f"Unfortunately, none of the {len(original)} places I found have {labels}. "
            "Would you like me to search for new options with that requirement?"
        )
    if len(filtered) == 1:
        return f"Out of the options I found, {filtered[0].name} has {labels}:"
    return f"I found {len(filtered)} places with {labels}:"
