import pytest

from comfort_finder.followup import (
    ATTRIBUTE_FILTERS,
    analyze_follow_up,
    filter_venues,
    generate_filter_response,
    get_nested_value,
)
from comfort_finder.models import ComfortAttribute, Confidence, Venue


@pytest.fixture
def results(quiet_cup, loud_bar, fancy_italian):
    return [quiet_cup, loud_bar, fancy_italian]


def test_outdoor_seating_question_is_a_filter():
    result = analyze_follow_up("Does it have outdoor seating?", True)
    assert result.is_filter is True
    assert result.is_new_search is False
    assert "outdoor_seating" in result.detected_filters
    assert result.confidence == Confidence.HIGH


def test_different_cuisine_is_a_new_search():
    result = analyze_follow_up("Find me a different Italian place", True)
    assert result.is_new_search is True
    assert result.is_filter is False


@pytest.mark.parametrize("message", ["Any of them open now?", "which one is cheaper", "outdoor seating?", "", None])
def test_no_prior_results_is_always_a_new_search(message):
    result = analyze_follow_up(message, False)
    assert (result.is_filter, result.is_new_search, result.confidence) == (False, True, Confidence.HIGH)


def test_blank_message_is_a_new_search():
    assert analyze_follow_up("   ", True).is_new_search is True


@pytest.mark.parametrize("message", [
    "Does it have outdoor seating?",
    "Find me a different Italian place",
    "any of them open now",
    "thanks!",
    "start over",
    "which one is the quietest",
    "something with wifi",
    "higher rated ones please",
])
@pytest.mark.parametrize("has_results", [True, False])
def test_exactly_one_intent(message, has_results):
    result = analyze_follow_up(message, has_results)
    assert result.is_filter != result.is_new_search


def test_unrelated_message_is_low_confidence_new_search():
    result = analyze_follow_up("thanks!", True)
    assert result.is_new_search is True
    assert result.matched_patterns == 0
    assert result.confidence == Confidence.LOW


def test_reference_without_attribute_is_medium_confidence():
    result = analyze_follow_up("do any of these look good to you today", True)
    assert result.is_filter is True
    assert result.detected_filters == []
    assert result.confidence == Confidence.MEDIUM


def test_detects_multiple_filters():
    result = analyze_follow_up("any of them cheap with wifi?", True)
    assert set(result.detected_filters) >= {"price_low", "wifi"}


def test_filter_by_outdoor_seating(results):
    outcome = filter_venues(results, ["outdoor_seating"])
    assert [v.name for v in outcome.filtered] == ["Quiet Cup"]
    assert outcome.applied == ["outdoor_seating"]
    assert outcome.no_match is False


def test_outdoor_seating_found_in_review_text():
    venue = Venue.model_validate({"name": "Garden", "reviews": [{"text": "Lovely patio out back"}]})
    assert ATTRIBUTE_FILTERS["outdoor_seating"].accepts(venue)


def test_attribute_chip_satisfies_filter():
    venue = Venue(name="Chip", comfort_attributes=[ComfortAttribute(variant="wifi", label="WiFi Likely")])
    assert ATTRIBUTE_FILTERS["wifi"].accepts(venue)


def test_wifi_no_does_not_count():
    assert not ATTRIBUTE_FILTERS["wifi"].accepts(Venue(name="Offline", wifi="no"))
    assert ATTRIBUTE_FILTERS["wifi"].accepts(Venue(name="Online", wifi="free"))


def test_nested_provider_fields(fancy_italian, quiet_cup):
    assert ATTRIBUTE_FILTERS["open_now"].accepts(fancy_italian)
    assert not ATTRIBUTE_FILTERS["open_now"].accepts(quiet_cup)
    assert ATTRIBUTE_FILTERS["reservations"].accepts(fancy_italian)


def test_score_filters(results):
    assert [v.name for v in filter_venues(results, ["price_high"]).filtered] == ["Trattoria Lume"]
    assert [v.name for v in filter_venues(results, ["price_low"]).filtered] == ["Quiet Cup", "The Loud Bar"]
    assert [v.name for v in filter_venues(results, ["higher_rated"]).filtered] == ["Trattoria Lume"]
    assert [v.name for v in filter_venues(results, ["quiet"]).filtered] == ["Quiet Cup"]


def test_filters_combine_with_and(results):
    outcome = filter_venues(results, ["price_low", "outdoor_seating"])
    assert [v.name for v in outcome.filtered] == ["Quiet Cup"]
    assert outcome.applied == ["price_low", "outdoor_seating"]


def test_no_match_when_everything_is_excluded(results):
    outcome = filter_venues(results, ["price_high", "outdoor_seating"])
    assert outcome.filtered == []
    assert outcome.no_match is True


def test_filter_that_removes_nothing_is_not_applied(quiet_cup):
    outcome = filter_venues([quiet_cup], ["price_low"])
    assert outcome.applied == []
    assert outcome.no_match is False


def test_unknown_filter_is_ignored(results):
    outcome = filter_venues(results, ["pet_friendly"])
    assert len(outcome.filtered) == 3
    assert outcome.applied == []


def test_filtering_is_idempotent(results):
    once = filter_venues(results, ["price_low"])
    twice = filter_venues(once.filtered, ["price_low"])
    assert [v.name for v in twice.filtered] == [v.name for v in once.filtered]
    assert twice.applied == []


def test_empty_inputs():
    assert filter_venues([], ["wifi"]).filtered == []
    assert len(filter_venues([{"name": "Raw"}], []).filtered) == 1


def test_get_nested_value():
    data = {"hours": [{"is_open_now": True}], "attributes": {"wifi": "free"}}
    assert get_nested_value(data, "hours[0].is_open_now") is True
    assert get_nested_value(data, "attributes.wifi") == "free"
    assert get_nested_value(data, "hours[3].is_open_now") is None
    assert get_nested_value(data, "missing.path") is None
    assert get_nested_value(None, "anything") is None


def test_get_nested_value_reads_model_extras(fancy_italian):
    assert get_nested_value(fancy_italian, "hours[0].is_open_now") is True
    assert get_nested_value(fancy_italian, "attributes.restaurants_reservations") is True


def test_filter_responses(results, quiet_cup):
    assert generate_filter_response([quiet_cup], ["outdoor_seating"], results) == (
        "Out of the options I found, Quiet Cup has outdoor seating:"
    )
    assert generate_filter_response(results[:2], ["price_low"], results) == (
        "I found 2 places with budget-friendly prices:"
    )
    none = generate_filter_response([], ["wifi", "open_now"], results)
    assert none.startswith("Unfortunately, none of the 3 places I found have WiFi and currently open.")


def test_null_review_text_does_not_break_filtering():
    venue = Venue.model_validate({"name": "X", "outdoor_seating": True, "reviews": [{"text": None}]})
    outcome = filter_venues([venue, Venue(name="Indoors")], ["outdoor_seating"])
    assert [v.name for v in outcome.filtered] == ["X"]
