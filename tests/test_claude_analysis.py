import json
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from comfort_finder import claude_analysis
from comfort_finder.claude_analysis import (
    _extract_json,
    analyze_reviews_with_claude,
    batch_analyze_venues,
    get_claude_attributes,
    get_claude_recommendation,
)
from comfort_finder.config import Config
from comfort_finder.models import ClaudeAnalysis, Review, UserPreferences, Venue

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")

GOOD_REPLY = {
    "comfort_score": 82,
    "noise_level": "quiet",
    "lighting": "natural",
    "crowding": "spacious",
    "best_for": "working",
    "best_times": "morning",
    "summary": "A calm, bright cafe that rarely fills up.",
    "quote": "null",
    "warnings": "None",
    "confidence": "high",
}


class FakeMessages:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=reply)])


def fake_client(*replies):
    return SimpleNamespace(messages=FakeMessages(replies))


@pytest.fixture
def config():
    return Config(anthropic_api_key="", model="test-model")


def test_parses_a_json_reply(quiet_cup, calm_reviews, config):
    client = fake_client(json.dumps(GOOD_REPLY))
    analysis = analyze_reviews_with_claude(quiet_cup, calm_reviews, config, client=client)
    assert analysis.comfort_score == 82
    assert analysis.noise_level == "quiet"
    assert analysis.quote is None
    assert analysis.warnings is None
    call = client.messages.calls[0]
    assert call["model"] == "test-model"
    assert "Quiet Cup" in call["messages"][0]["content"]


def test_preferences_go_into_the_prompt(quiet_cup, calm_reviews, config):
    client = fake_client(json.dumps(GOOD_REPLY))
    analyze_reviews_with_claude(quiet_cup, calm_reviews, config, UserPreferences(noise_sensitivity=5), client)
    assert "high noise sensitivity" in client.messages.calls[0]["messages"][0]["content"]


def test_fenced_reply_is_accepted(quiet_cup, calm_reviews, config):
    reply = "Here you go:\n```json\n" + json.dumps(GOOD_REPLY) + "\n```"
    analysis = analyze_reviews_with_claude(quiet_cup, calm_reviews, config, client=fake_client(reply))
    assert analysis.best_for == "working"


def test_out_of_range_score_is_clamped(quiet_cup, calm_reviews, config):
    reply = json.dumps({**GOOD_REPLY, "comfort_score": 140})
    analysis = analyze_reviews_with_claude(quiet_cup, calm_reviews, config, client=fake_client(reply))
    assert analysis.comfort_score == 100


def test_unparseable_reply_returns_none(quiet_cup, calm_reviews, config):
    client = fake_client("I'm not sure about this one.")
    assert analyze_reviews_with_claude(quiet_cup, calm_reviews, config, client=client) is None


def test_api_error_returns_none(quiet_cup, calm_reviews, config):
    client = fake_client(anthropic.APIConnectionError(request=REQUEST))
    assert analyze_reviews_with_claude(quiet_cup, calm_reviews, config, client=client) is None


def test_rate_limit_is_retried(quiet_cup, calm_reviews, config, monkeypatch):
    sleeps = []
    monkeypatch.setattr(claude_analysis.time, "sleep", sleeps.append)
    limited = anthropic.RateLimitError(
        "slow down", response=httpx.Response(429, request=REQUEST), body=None,
    )
    client = fake_client(limited, json.dumps(GOOD_REPLY))
    analysis = analyze_reviews_with_claude(quiet_cup, calm_reviews, config, client=client)
    assert analysis.comfort_score == 82
    assert sleeps == [30]


def test_skips_without_key_or_client(quiet_cup, calm_reviews, config):
    assert analyze_reviews_with_claude(quiet_cup, calm_reviews, config) is None


def test_skips_short_or_missing_reviews(quiet_cup, config):
    client = fake_client(json.dumps(GOOD_REPLY))
    assert analyze_reviews_with_claude(quiet_cup, [], config, client=client) is None
    assert analyze_reviews_with_claude(quiet_cup, [Review(text="Nice.")], config, client=client) is None
    assert client.messages.calls == []


def test_batch_sets_analysis_per_venue(quiet_cup, loud_bar, calm_reviews, config):
    with_reviews = quiet_cup.model_copy(update={"reviews": calm_reviews})
    client = fake_client(json.dumps(GOOD_REPLY))
    analyzed = batch_analyze_venues([with_reviews, loud_bar], config, client=client, max_workers=1)
    assert analyzed[0].claude_analysis.comfort_score == 82
    assert analyzed[1].claude_analysis is None
    assert len(client.messages.calls) == 1


def test_recommendation_prefers_quote():
    assert get_claude_recommendation(ClaudeAnalysis(quote="So calm", summary="Calm")) == '"So calm"'
    assert get_claude_recommendation(ClaudeAnalysis(summary="Calm")) == "Calm"
    assert get_claude_recommendation(ClaudeAnalysis()) is None
    assert get_claude_recommendation(None) is None


def test_attributes_from_analysis():
    analysis = ClaudeAnalysis.model_validate(GOOD_REPLY)
    assert [a.label for a in get_claude_attributes(analysis)] == [
        "Quiet", "Natural Light", "Spacious", "Good for Work",
    ]
    assert get_claude_attributes(ClaudeAnalysis(noise_level="varies")) == []
    assert get_claude_attributes(None) == []


def test_extract_json_strategies():
    assert _extract_json('{"a": 1}') == {"a": 1}
    assert _extract_json('```\n{"a": 1}\n```') == {"a": 1}
    assert _extract_json('Sure! {"a": 1} Hope that helps.') == {"a": 1}
    assert _extract_json("") is None
    assert _extract_json("no json here") is None


def test_venue_round_trips_analysis_alias():
    venue = Venue.model_validate({"name": "Aliased", "claudeAnalysis": GOOD_REPLY})
    assert venue.claude_analysis.comfort_score == 82
    assert "claudeAnalysis" in venue.model_dump(by_alias=True)


def test_list_valued_fields_keep_the_first_entry(quiet_cup, calm_reviews, config):
    reply = {**GOOD_REPLY, "best_for": ["working", "relaxing"], "best_times": ["morning", "late afternoon"]}
    analysis = analyze_reviews_with_claude(quiet_cup, calm_reviews, config, client=fake_client(json.dumps(reply)))
    assert analysis.comfort_score == 82
    assert analysis.best_for == "working"
    assert analysis.best_times == "morning"
    assert ClaudeAnalysis(best_for=[]).best_for is None
