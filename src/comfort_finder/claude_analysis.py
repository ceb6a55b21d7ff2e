"""Claude-powered review analysis.

Asks Claude for a structured comfort read of a venue's reviews. Any failure
(no key, API error, unparseable reply) returns None so callers fall back to
the keyword analysis.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import anthropic
from pydantic import ValidationError

from comfort_finder.config import Config
from comfort_finder.models import ClaudeAnalysis, ComfortAttribute, Review, UserPreferences, Venue
from comfort_finder.preferences import format_preferences_for_prompt
from comfort_finder.templates.analysis import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt

logger = logging.getLogger(__name__)

MIN_REVIEW_CHARS = 50
MAX_TOKENS = 500


def _call_with_retry(client, model, prompt, max_retries=3):
    """Call the API with automatic retry on rate limit errors."""
    for attempt in range(max_retries):
        try:
            return client.messages.create(
                model=model,
                max_tokens=MAX_TOKENS,
                system=ANALYSIS_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError:
            wait = 30 * (attempt + 1)
            logger.warning("Rate limited, waiting %ss before retry (%d/%d)", wait, attempt + 1, max_retries)
            time.sleep(wait)
    # Final attempt without catching
    return client.messages.create(
        model=model,
        max_tokens=MAX_TOKENS,
        system=ANALYSIS_SYSTEM_PROMPT,
        messages=[{"role": "user", "content": prompt}],
    )


def analyze_reviews_with_claude(
    venue: Venue,
    reviews: Sequence[Review] | None,
    config: Config,
    preferences: UserPreferences | None = None,
    client=None,
) -> ClaudeAnalysis | None:
    """Return Claude's comfort analysis of the reviews, or None."""
    if not config.anthropic_api_key and client is None:
        logger.info("No Anthropic API key configured, skipping AI analysis")
        return None
    if not reviews:
        return None

    review_text = "\n---\n".join(r.text for r in reviews if r.text)[:config.max_review_chars]
    if len(review_text) < MIN_REVIEW_CHARS:
        return None

    client = client or anthropic.Anthropic(api_key=config.anthropic_api_key)
    prompt = build_analysis_prompt(
        venue.name,
        [c.title or c.alias or "" for c in venue.categories],
        review_text,
        format_preferences_for_prompt(preferences) if preferences else "",
    )

    logger.info("Analyzing %d reviews for %s", len(reviews), venue.name)
    try:
        response = _call_with_retry(client, config.model, prompt)
    except anthropic.APIError as e:
        logger.error("Claude API error for %s: %s", venue.name, e)
        return None

    text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
    data = _extract_json(text)
    if data is None:
        logger.error("Could not parse JSON from Claude response: %s", text[:200])
        return None

    try:
        analysis = ClaudeAnalysis.model_validate(data)
    except ValidationError as e:
        logger.error("Claude analysis for %s did not validate: %s", venue.name, e)
        return None

    logger.info("%s analysis: comfort %s, noise %s", venue.name, analysis.comfort_score, analysis.noise_level)
    return analysis


def batch_analyze_venues(
    venues: Sequence[Venue],
    config: Config,
    preferences: UserPreferences | None = None,
    client=None,
    max_workers: int = 4,
) -> list[Venue]:
    """Analyze several venues concurrently; each gets its ``claude_analysis`` set (or None)."""

    def _one(venue: Venue) -> Venue:
        analysis = None
        if venue.reviews:
            analysis = analyze_reviews_with_claude(venue, venue.reviews, config, preferences, client)
        return venue.model_copy(update={"claude_analysis": analysis})

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(_one, venues))


def get_claude_recommendation(analysis: ClaudeAnalysis | None) -> str | None:
    """The quote if there is one, else the summary."""
    if analysis is None:
        return None
    if analysis.quote:
        return f'"{analysis.quote}"'
    return analysis.summary or None


def get_claude_attributes(analysis: ClaudeAnalysis | None) -> list[ComfortAttribute]:
    """Attribute chips from the LLM analysis (max 4)."""
    if analysis is None:
        return []

    attributes = []

    noise_labels = {"quiet": "Quiet", "moderate": "Moderate", "loud": "Can be loud"}
    if analysis.noise_level in noise_labels:
        attributes.append(ComfortAttribute(variant="quiet", label=noise_labels[analysis.noise_level]))

    if analysis.lighting == "dim":
        attributes.append(ComfortAttribute(variant="dim", label="Dim Lighting"))
    elif analysis.lighting == "natural":
        attributes.append(ComfortAttribute(variant="dim", label="Natural Light"))

    if analysis.crowding == "spacious":
        attributes.append(ComfortAttribute(variant="spacious", label="Spacious"))

    best_for = {
        "working": ComfortAttribute(variant="wifi", label="Good for Work"),
        "relaxing": ComfortAttribute(variant="cozy", label="Relaxing"),
        "conversation": ComfortAttribute(variant="cozy", label="Good for Talking"),
    }
    if analysis.best_for in best_for:
        attributes.append(best_for[analysis.best_for])

    return attributes[:4]


def _extract_json(text: str) -> dict | None:
    """Try multiple strategies to extract JSON from the response text."""
    if not text:
        return None

    # Strategy 1: Direct parse
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        pass

    # Strategy 2: Remove markdown code fences
    cleaned = text.strip()
    if "```" in cleaned:
        lines = [l for l in cleaned.split("\n") if not l.strip().startswith("```")]
        try:
            return json.loads("\n".join(lines))
        except json.JSONDecodeError:
            pass

    # Strategy 3: Find the outermost JSON object
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError:
            pass

    return None
