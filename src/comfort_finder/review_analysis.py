"""Keyword-based review analysis.

Scans review text for comfort signals (noise, lighting, space, ambiance,
sensory) and turns them into a per-category breakdown, an overall sentiment
score, highlights/concerns, and short quotes for the detail view.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from comfort_finder.models import (
    CategoryBreakdown,
    ComfortQuote,
    Review,
    ReviewAnalysis,
    ReviewSignal,
)
from comfort_finder.tables import (
    CATEGORY_ICONS,
    CATEGORY_WEIGHTS,
    COMFORT_SIGNALS,
    NEGATIVE_KEYWORDS,
    POSITIVE_KEYWORDS,
    round_half_up,
)

MAX_HIGHLIGHTS = 5
MAX_CONCERNS = 3
MAX_QUOTES = 5
QUOTE_REVIEW_LIMIT = 10

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def _as_reviews(reviews: Sequence[Review | dict] | None) -> list[Review]:
    return [r if isinstance(r, Review) else Review.model_validate(r) for r in reviews or []]


def _count(keyword: str, text: str) -> int:
    return len(re.findall(re.escape(keyword), text))


def analyze_reviews(reviews: Sequence[Review | dict] | None) -> ReviewAnalysis:
    """Analyze reviews for comfort signals.

    Keywords are counted across the whole corpus, not per review. A category
    with no mentions stays at a neutral 50.
    """
    reviews = _as_reviews(reviews)
    if not reviews:
        return ReviewAnalysis(
            breakdown={category: CategoryBreakdown() for category in CATEGORY_WEIGHTS},
        )

    all_text = " ".join(r.text.lower() for r in reviews)

    breakdown: dict[str, CategoryBreakdown] = {}
    highlights: list[ReviewSignal] = []
    concerns: list[ReviewSignal] = []

    for category in CATEGORY_WEIGHTS:
        positive_count = 0
        negative_count = 0

        for keyword in COMFORT_SIGNALS["positive"][category]:
            hits = _count(keyword, all_text)
            if hits:
                positive_count += hits
                if len(highlights) < MAX_HIGHLIGHTS and not any(keyword in h.text for h in highlights):
                    highlights.append(ReviewSignal(
                        category=category,
                        text=keyword,
                        sentiment="positive",
                        icon=CATEGORY_ICONS.get(category, "circle"),
                    ))

        for keyword in COMFORT_SIGNALS["negative"][category]:
            hits = _count(keyword, all_text)
            if hits:
                negative_count += hits
                if len(concerns) < MAX_CONCERNS and not any(keyword in c.text for c in concerns):
                    concerns.append(ReviewSignal(
                        category=category,
                        text=keyword,
                        sentiment="negative",
                        icon=CATEGORY_ICONS.get(category, "circle"),
                    ))

        mentions = positive_count + negative_count
        score = round_half_up(positive_count / mentions * 100) if mentions else 50
        breakdown[category] = CategoryBreakdown(
            score=score,
            mentions=mentions,
            positive=positive_count,
            negative=negative_count,
        )

    # Weighted overall score; each category's weight grows with its mentions (up to 5)
    weighted_sum = 0.0
    total_weight = 0.0
    total_mentions = 0
    for category, weight in CATEGORY_WEIGHTS.items():
        cat = breakdown[category]
        if cat.mentions > 0:
            scaled = weight * min(cat.mentions, 5)
            weighted_sum += cat.score * scaled
            total_weight += scaled
        total_mentions += cat.mentions

    sentiment_score = round_half_up(weighted_sum / total_weight) if total_weight > 0 else 50
    confidence = min(100, round_half_up(total_mentions / len(reviews) * 25))

    return ReviewAnalysis(
        sentiment_score=sentiment_score,
        confidence=confidence,
        review_count=len(reviews),
        total_mentions=total_mentions,
        highlights=highlights[:MAX_HIGHLIGHTS],
        concerns=concerns[:MAX_CONCERNS],
        breakdown=breakdown,
    )


def extract_comfort_quotes(reviews: Sequence[Review | dict] | None) -> list[ComfortQuote]:
    """Pull short sentences that mention a comfort keyword out of the first reviews."""
    reviews = _as_reviews(reviews)
    quotes: list[ComfortQuote] = []
    all_keywords = POSITIVE_KEYWORDS + NEGATIVE_KEYWORDS

    for review in reviews[:QUOTE_REVIEW_LIMIT]:
        for sentence in _SENTENCE_SPLIT.split(review.text or ""):
            trimmed = sentence.strip()
            if 20 < len(trimmed) < 150:
                lower = trimmed.lower()
                keyword = next((k for k in all_keywords if k in lower), None)
                if keyword is not None:
                    is_positive = any(k in lower for k in POSITIVE_KEYWORDS)
                    quotes.append(ComfortQuote(
                        text=trimmed,
                        sentiment="positive" if is_positive else "negative",
                        keyword=keyword,
                        user=review.author,
                    ))
            if len(quotes) >= MAX_QUOTES:
                return quotes

    return quotes


def generate_comfort_summary(analysis: ReviewAnalysis | None) -> str:
    """Summarize an analysis in a couple of sentences for the venue page."""
    if analysis is None or analysis.confidence == 0:
        return "We don't have enough review data to assess comfort levels for this venue."

    parts = []

    if analysis.sentiment_score >= 70:
        parts.append("Reviewers frequently mention this as a comfortable, calm spot.")
    elif analysis.sentiment_score >= 50:
        parts.append("Reviews suggest this venue has moderate comfort levels.")
    else:
        parts.append("Reviews indicate this venue may be more lively or stimulating.")

    if analysis.highlights:
        parts.append(f'People often note it\'s "{analysis.highlights[0].text}".')

    if analysis.concerns:
        parts.append(f'Some mention it can be "{analysis.concerns[0].text}" at times.')

    noise = analysis.breakdown.get("noise", CategoryBreakdown())
    space = analysis.breakdown.get("space", CategoryBreakdown())
    if noise.score >= 70 and noise.mentions >= 2:
        parts.append("Noise levels are generally kept low here.")
    if space.score >= 70 and space.mentions >= 2:
        parts.append("The space feels uncrowded and comfortable.")

    return " ".join(parts)
