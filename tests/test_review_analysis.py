from comfort_finder.models import Review, ReviewAnalysis
from comfort_finder.review_analysis import analyze_reviews, extract_comfort_quotes, generate_comfort_summary
from comfort_finder.tables import CATEGORY_WEIGHTS


def test_no_reviews_is_neutral():
    analysis = analyze_reviews([])
    assert analysis.sentiment_score == 50
    assert analysis.confidence == 0
    assert analysis.review_count == 0
    assert set(analysis.breakdown) == set(CATEGORY_WEIGHTS)
    assert all(cat.score == 50 and cat.mentions == 0 for cat in analysis.breakdown.values())


def test_single_positive_mention():
    analysis = analyze_reviews([Review(text="It is so quiet here.")])
    noise = analysis.breakdown["noise"]
    assert (noise.positive, noise.negative, noise.score) == (1, 0, 100)
    assert analysis.sentiment_score == 100
    assert analysis.total_mentions == 1
    assert analysis.confidence == 25
    assert [h.text for h in analysis.highlights] == ["quiet"]
    assert analysis.highlights[0].icon == "volume"
    assert analysis.concerns == []


def test_negative_mentions_become_concerns():
    analysis = analyze_reviews([{"text": "Very loud and crowded."}])
    assert analysis.breakdown["noise"].score == 0
    assert analysis.breakdown["space"].score == 0
    assert analysis.sentiment_score == 0
    assert analysis.confidence == 50
    assert [c.text for c in analysis.concerns] == ["loud", "crowded"]
    assert all(c.sentiment == "negative" for c in analysis.concerns)


def test_confidence_is_capped_at_100():
    analysis = analyze_reviews([Review(text="quiet peaceful calm serene tranquil")])
    assert analysis.total_mentions > 4
    assert analysis.confidence == 100


def test_keyword_in_two_categories_is_highlighted_once():
    analysis = analyze_reviews([Review(text="relaxing")])
    assert analysis.breakdown["noise"].mentions == 1
    assert analysis.breakdown["ambiance"].mentions == 1
    assert [h.text for h in analysis.highlights] == ["relaxing"]


def test_highlights_and_concerns_are_capped():
    text = (
        "quiet peaceful calm dim candlelit spacious roomy cozy chill "
        "loud noisy crowded packed cramped hectic"
    )
    analysis = analyze_reviews([Review(text=text)])
    assert len(analysis.highlights) == 5
    assert len(analysis.concerns) == 3


def test_scores_stay_in_range(calm_reviews):
    analysis = analyze_reviews(calm_reviews)
    assert 0 <= analysis.sentiment_score <= 100
    assert 0 <= analysis.confidence <= 100
    assert analysis.review_count == 3
    for cat in analysis.breakdown.values():
        assert 0 <= cat.score <= 100
        assert cat.mentions == cat.positive + cat.negative


def test_quotes_pick_short_comfort_sentences():
    reviews = [
        Review(text="Lovely place. The music is soft and quiet in the mornings! Bad.", user={"name": "Jo"}),
        Review(text="The room was far too loud on Friday night."),
    ]
    quotes = extract_comfort_quotes(reviews)
    assert [q.text for q in quotes] == [
        "The music is soft and quiet in the mornings",
        "The room was far too loud on Friday night",
    ]
    assert quotes[0].sentiment == "positive"
    assert quotes[0].keyword == "quiet"
    assert quotes[0].user == "Jo"
    assert quotes[1].sentiment == "negative"
    assert quotes[1].user == "Anonymous"


def test_quotes_are_capped_at_five():
    review = Review(text=". ".join(["It was really quiet in here today"] * 8))
    assert len(extract_comfort_quotes([review])) == 5


def test_quotes_skip_long_and_short_sentences():
    long_sentence = "quiet " * 40
    assert extract_comfort_quotes([Review(text=f"Quiet. {long_sentence}")]) == []


def test_summary_without_data():
    assert generate_comfort_summary(ReviewAnalysis()).startswith("We don't have enough review data")
    assert generate_comfort_summary(None).startswith("We don't have enough review data")


def test_summary_mentions_top_highlight():
    summary = generate_comfort_summary(analyze_reviews([Review(text="It is so quiet here.")]))
    assert summary.startswith("Reviewers frequently mention this as a comfortable, calm spot.")
    assert 'People often note it\'s "quiet".' in summary


def test_summary_for_lively_venue():
    summary = generate_comfort_summary(analyze_reviews([Review(text="Very loud and crowded.")]))
    assert summary.startswith("Reviews indicate this venue may be more lively")
    assert 'Some mention it can be "loud" at times.' in summary


def test_null_review_text_counts_as_empty():
    analysis = analyze_reviews([{"text": None}, {"text": "so quiet"}])
    assert analysis.review_count == 2
    assert analysis.breakdown["noise"].positive == 1
