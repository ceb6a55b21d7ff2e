"""Prompt templates for LLM review analysis."""

from __future__ import annotations

ANALYSIS_SYSTEM_PROMPT = """\
You analyze restaurant and cafe reviews for people with sensory sensitivities \
(autism, ADHD, migraines, anxiety). Focus only on noise, lighting, crowding, \
smells and overall atmosphere. Never invent details the reviews don't support.
"""


def build_analysis_prompt(
    venue_name: str,
    category_titles: list[str],
    review_text: str,
    preferences_line: str = "",
) -> str:
    """Build the user prompt asking for a structured comfort analysis."""

    prompt = (
        f'Analyze these reviews for "{venue_name}" ({", ".join(category_titles)}) '
        "from the perspective of someone with sensory sensitivities "
        "(autism, ADHD, migraines, anxiety).\n\n"
    )
    if preferences_line:
        prompt += f"{preferences_line}\n\n"

    prompt += (
        f"Reviews:\n{review_text}\n\n"
        "Respond in JSON format only:\n"
        "{\n"
        '  "comfort_score": <0-100, where 100 is extremely calm/quiet>,\n'
        '  "noise_level": "<quiet|moderate|loud|varies>",\n'
        '  "lighting": "<dim|natural|bright|not_mentioned>",\n'
        '  "crowding": "<spacious|moderate|crowded|varies>",\n'
        '  "best_for": "<working|relaxing|conversation|dates|quick_visit>",\n'
        '  "best_times": "<morning|afternoon|evening|weekdays|weekends|anytime>",\n'
        '  "summary": "<1 sentence unique summary about comfort/atmosphere>",\n'
        '  "quote": "<best short quote from reviews about atmosphere, or null>",\n'
        '  "warnings": "<any sensory concerns, or null>",\n'
        '  "confidence": "<low|medium|high based on how much comfort info was in reviews>"\n'
        "}"
    )
    return prompt
