import random

import pytest

from comfort_finder.comfort_score import (
    FALLBACK_REASON,
    analyze_review_text,
    calculate_comfort_score,
    category_score,
    generate_recommendation_reason,
    pick_one,
    recommendation_candidates,
)
from comfort_finder.models import Review, UserPreferences, Venue
from comfort_finder.tables import comfort_color, comfort_label


def test_quiet_cup_scores_high(quiet_cup, default_prefs):
    result = calculate_comfort_score(quiet_cup, default_prefs)
    # 50 + 45*0.6 + 30*0.3 + 25*0.2 + 5 (outdoor)
    assert result.score == 96
    assert result.label == "Very Calm"
    assert [f.factor for f in result.factors] == ["noise", "ambiance", "category", "outdoor"]


def test_no_preferences_uses_default_noise_weight(quiet_cup):
    assert calculate_comfort_score(quiet_cup).score == 96


def test_loud_bar_scores_low(loud_bar, default_prefs):
    result = calculate_comfort_score(loud_bar, default_prefs)
    assert result.score == 25
    assert result.label == "Very Lively"


def test_score_is_clamped(quiet_cup, sensitive_prefs, loud_bar):
    assert calculate_comfort_score(quiet_cup, sensitive_prefs).score == 100
    assert 0 <= calculate_comfort_score(loud_bar, sensitive_prefs).score <= 100


def test_noise_sensitivity_moves_score_away_from_neutral(quiet_cup, loud_bar):
    low = UserPreferences(noise_sensitivity=1)
    high = UserPreferences(noise_sensitivity=5)
    assert calculate_comfort_score(quiet_cup, high).score > calculate_comfort_score(quiet_cup, low).score
    assert calculate_comfort_score(loud_bar, high).score < calculate_comfort_score(loud_bar, low).score


@pytest.mark.parametrize("sensitivity", [1, 2, 3, 4])
def test_quiet_venue_score_never_drops_as_noise_sensitivity_rises(sensitivity):
    venue = Venue(name="Hush", noise_level="quiet")
    lower = calculate_comfort_score(venue, UserPreferences(noise_sensitivity=sensitivity))
    higher = calculate_comfort_score(venue, UserPreferences(noise_sensitivity=sensitivity + 1))
    assert higher.score >= lower.score


def test_null_review_text_is_scored_as_empty():
    venue = Venue.model_validate({"name": "X", "reviews": [{"text": None}, {"text": "so quiet and peaceful"}]})
    assert venue.reviews[0].text == ""
    result = calculate_comfort_score(venue)
    assert "reviews" in [f.factor for f in result.factors]


@pytest.mark.parametrize("quieter,louder", [("quiet", "average"), ("average", "loud"), ("loud", "very_loud")])
def test_quieter_noise_never_scores_lower(quieter, louder):
    a = calculate_comfort_score(Venue(name="A", noise_level=quieter))
    b = calculate_comfort_score(Venue(name="B", noise_level=louder))
    assert a.score >= b.score


def test_empty_venue_is_neutral():
    result = calculate_comfort_score(Venue(name="Blank"))
    assert result.score == 50
    assert result.factors == []
    assert result.label == "Moderate"


def test_flat_bonuses():
    venue = Venue(name="Bonus", reservations=True, price="$$$")
    result = calculate_comfort_score(venue)
    assert result.score == 60
    assert [f.factor for f in result.factors] == ["reservations", "price"]


def test_outdoor_seating_from_provider_attributes():
    venue = Venue.model_validate({"name": "Patio", "attributes": {"outdoor_seating": True}})
    assert calculate_comfort_score(venue).score == 55


def test_review_keywords_adjust_score():
    venue = Venue(name="Mixed", reviews=[Review(text="quiet and peaceful, but crowded")])
    result = calculate_comfort_score(venue)
    assert result.score == 53
    assert result.factors[-1].factor == "reviews"
    assert result.factors[-1].impact == 3


def test_review_impact_is_capped():
    text = "quiet peaceful calm silent serene hushed tranquil soothing spacious roomy cozy mellow"
    venue = Venue(name="Zen Den", reviews=[Review(text=text)])
    assert calculate_comfort_score(venue).score == 70


def test_empty_review_list_still_counts_as_a_factor():
    result = calculate_comfort_score(Venue(name="New", reviews=[]))
    assert result.score == 50
    assert [f.factor for f in result.factors] == ["reviews"]


def test_category_score_takes_best_alias():
    assert category_score(["italian", "tea"]) == 80
    assert category_score(["wine_bars"]) == 50  # bars (35) never lowers below neutral
    assert category_score(["unknown"]) == 50


def test_analyze_review_text():
    found = analyze_review_text("Calm and cozy, never loud")
    assert "calm" in found["positive"]
    assert "cozy" in found["positive"]
    assert "loud" in found["negative"]


@pytest.mark.parametrize("score,label,color", [
    (80, "Very Calm", "#5a7a52"),
    (65, "Calm", "#7a9a52"),
    (50, "Moderate", "#9a9a52"),
    (35, "Lively", "#9a7a52"),
    (34, "Very Lively", "#9a5a52"),
    (0, "Very Lively", "#9a5a52"),
])
def test_labels(score, label, color):
    assert comfort_label(score) == label
    assert comfort_color(score) == color


def test_reason_is_one_of_the_candidates(quiet_cup, rng):
    candidates = recommendation_candidates(quiet_cup)
    assert candidates == [
        "Known for its peaceful, quiet atmosphere",
        "Intimate setting perfect for focused conversation",
        "Outdoor seating available for when you need fresh air",
    ]
    assert generate_recommendation_reason(quiet_cup, rng=rng) in candidates


def test_reason_is_reproducible_with_a_seed(quiet_cup):
    first = generate_recommendation_reason(quiet_cup, rng=random.Random(7))
    second = generate_recommendation_reason(quiet_cup, rng=random.Random(7))
    assert first == second


def test_low_noise_reason_needs_sensitive_user(quiet_cup, sensitive_prefs):
    scored = quiet_cup.model_copy(update={"comfort_score": 90})
    assert "Highly rated for low noise levels" in recommendation_candidates(scored, sensitive_prefs)
    assert "Highly rated for low noise levels" not in recommendation_candidates(scored, UserPreferences())


def test_fallback_reason():
    assert generate_recommendation_reason(Venue(name="Plain"), rng=random.Random(1)) == FALLBACK_REASON


def test_pick_one_empty():
    assert pick_one([], random.Random(1)) is None
