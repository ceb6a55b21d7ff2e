"""User sensory preferences: loading from client payloads and prompt formatting."""

from __future__ import annotations

from typing import Any

from comfort_finder.models import UserPreferences


def load_preferences(data: UserPreferences | dict[str, Any] | None) -> UserPreferences:
    """Merge whatever the client stored over the defaults (missing keys stay at 3)."""
    if isinstance(data, UserPreferences):
        return data
    return UserPreferences.model_validate(data or {})


def format_preferences_for_prompt(preferences: UserPreferences) -> str:
    """One-line summary of the user's needs for the LLM prompt. Empty when nothing stands out."""
    parts = []

    if preferences.noise_sensitivity >= 4:
        parts.append("high noise sensitivity - prefer quiet venues")
    elif preferences.noise_sensitivity <= 2:
        parts.append("low noise sensitivity - moderate noise is okay")

    if preferences.light_sensitivity >= 4:
        parts.append("high light sensitivity - prefer dim or natural lighting")
    elif preferences.light_sensitivity <= 2:
        parts.append("low light sensitivity - bright lighting is fine")

    if preferences.spaciousness_preference >= 4:
        parts.append("strong preference for spacious, uncrowded venues")
    elif preferences.spaciousness_preference <= 2:
        parts.append("cozy/intimate spaces are preferred")

    if preferences.other_needs.strip():
        parts.append(f"other needs: {preferences.other_needs.strip()}")

    return f"User preferences: {'; '.join(parts)}" if parts else ""
