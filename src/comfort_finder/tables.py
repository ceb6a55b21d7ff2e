"""Shared lookup tables for comfort scoring.

The comfort calculator, the sensory matcher and the review analyzer all read
from these tables so their thresholds can't drift apart.
"""

from __future__ import annotations

import math

# ----- Noise -----

NOISE_SCORES: dict[str, int] = {
    "quiet": 95,
    "average": 65,
    "loud": 30,
    "very_loud": 10,
}

NOISE_DEFAULT = 50

# ----- Ambiance tags -----

AMBIANCE_SCORES: dict[str, int] = {
    "intimate": 90,
    "romantic": 85,
    "cozy": 80,
    "casual": 70,
    "classy": 65,
    "upscale": 60,
    "hipster": 55,
    "trendy": 50,
    "divey": 45,
    "touristy": 40,
}

AMBIANCE_DEFAULT = 50

# ----- Venue categories -----
# Order matters: the first key contained in a category alias wins for that alias.

CATEGORY_BASE_SCORES: dict[str, int] = {
    # Calm by nature
    "cafes": 75,
    "coffee": 75,
    "tea": 80,
    "bookstores": 85,
    "libraries": 90,
    "juice": 70,
    "vegan": 70,
    "vegetarian": 70,
    "bakeries": 70,
    "desserts": 65,
    "breakfast": 65,

    # Cuisines
    "italian": 60,
    "japanese": 65,
    "sushi": 65,
    "french": 65,
    "mediterranean": 60,
    "thai": 55,
    "vietnamese": 60,
    "indian": 55,
    "chinese": 50,

    # Lively (can still be comfortable)
    "bars": 35,
    "pubs": 40,
    "sports_bars": 20,
    "clubs": 15,
    "nightlife": 20,
    "breweries": 45,
    "mexican": 50,
    "pizza": 45,
    "burgers": 45,
    "bbq": 40,
}

CATEGORY_DEFAULT = 50

# ----- Review keyword vocabularies -----

COMFORT_SIGNALS: dict[str, dict[str, list[str]]] = {
    "positive": {
        "noise": [
            "quiet", "peaceful", "calm", "silent", "soft music", "low music",
            "no music", "relaxing", "serene", "hushed", "tranquil", "soothing",
            "can hear yourself think", "conversation friendly", "not loud",
        ],
        "lighting": [
            "dim", "soft lighting", "candlelit", "cozy lighting", "not too bright",
            "warm lighting", "ambient", "gentle light", "romantic lighting",
            "natural light", "soft glow", "low lighting",
        ],
        "space": [
            "spacious", "uncrowded", "private", "secluded", "intimate", "roomy",
            "plenty of space", "not packed", "spread out", "comfortable seating",
            "booth", "corner table", "tucked away", "never crowded",
        ],
        "ambiance": [
            "relaxing", "soothing", "tranquil", "serene", "chill", "laid back",
            "cozy", "comfortable", "welcoming", "pleasant", "mellow", "zen",
            "stress-free", "easy going", "perfect for working", "great for reading",
        ],
        "sensory": [
            "not overwhelming", "easy on the senses", "calming atmosphere",
            "no strong smells", "fresh air", "well-ventilated", "clean",
            "comfortable temperature", "not stuffy",
        ],
    },
    "negative": {
        "noise": [
            "loud", "noisy", "blasting music", "screaming", "chaotic", "deafening",
            "can't hear", "yelling", "rowdy", "boisterous", "ear-splitting",
            "obnoxious music", "too loud", "very noisy", "loud crowd",
        ],
        "lighting": [
            "harsh", "bright lights", "fluorescent", "glaring", "too bright",
            "blinding", "sterile lighting", "clinical", "no ambiance",
        ],
        "space": [
            "crowded", "packed", "cramped", "tiny", "shoulder to shoulder",
            "elbow to elbow", "sardines", "no room", "claustrophobic",
            "long wait", "always busy", "jam packed", "standing room only",
        ],
        "ambiance": [
            "hectic", "stressful", "overwhelming", "chaotic", "frantic",
            "rushed", "uncomfortable", "tense", "anxiety-inducing", "crazy busy",
        ],
        "sensory": [
            "overwhelming", "overstimulating", "strong smells", "stuffy",
            "bad ventilation", "greasy smell", "too hot", "freezing cold",
            "sensory overload",
        ],
    },
}

CATEGORY_WEIGHTS: dict[str, float] = {
    "noise": 0.35,
    "lighting": 0.15,
    "space": 0.25,
    "ambiance": 0.15,
    "sensory": 0.10,
}

CATEGORY_ICONS = {
    "noise": "volume",
    "lighting": "sun",
    "space": "users",
    "ambiance": "heart",
    "sensory": "wind",
}


def _flatten(polarity: str) -> list[str]:
    seen: list[str] = []
    for keywords in COMFORT_SIGNALS[polarity].values():
        for keyword in keywords:
            if keyword not in seen:
                seen.append(keyword)
    return seen


POSITIVE_KEYWORDS = _flatten("positive")
NEGATIVE_KEYWORDS = _flatten("negative")

# ----- Labels -----

COMFORT_LABELS: list[tuple[int, str, str]] = [
    (80, "Very Calm", "#5a7a52"),
    (65, "Calm", "#7a9a52"),
    (50, "Moderate", "#9a9a52"),
    (35, "Lively", "#9a7a52"),
    (0, "Very Lively", "#9a5a52"),
]


def comfort_label(score: float) -> str:
    """Human-readable label for a comfort score."""
    return _label_row(score)[1]


def comfort_color(score: float) -> str:
    """Display color matching :func:`comfort_label` (map pins, badges)."""
    return _label_row(score)[2]


def _label_row(score: float) -> tuple[int, str, str]:
    for threshold, label, color in COMFORT_LABELS:
        if score >= threshold:
            return threshold, label, color
    return COMFORT_LABELS[-1]


def is_upscale(price: str | None) -> bool:
    return price in ("$$$", "$$$$")


def round_half_up(value: float) -> int:
    """Round .5 up, the way the web client rounds scores."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_score(value: float) -> int:
    return round_half_up(clamp(value, 0, 100))
