import random

import pytest

from comfort_finder.models import Review, UserPreferences, Venue


@pytest.fixture
def quiet_cup():
    return Venue.model_validate({
        "id": "quiet-cup",
        "name": "Quiet Cup",
        "categories": [{"alias": "coffee"}],
        "price": "$$",
        "noise_level": "quiet",
        "ambiance": ["cozy"],
        "outdoor_seating": True,
        "reservations": False,
    })


@pytest.fixture
def loud_bar():
    return Venue.model_validate({
        "id": "loud-bar",
        "name": "The Loud Bar",
        "categories": [{"alias": "sportsbars", "title": "Sports Bars"}],
        "price": "$",
        "noise_level": "very_loud",
        "ambiance": ["divey"],
        "rating": 3.5,
    })


@pytest.fixture
def fancy_italian():
    return Venue.model_validate({
        "id": "trattoria",
        "name": "Trattoria Lume",
        "categories": [{"alias": "italian", "title": "Italian"}],
        "price": "$$$$",
        "rating": 4.7,
        "reservations": True,
        "attributes": {"restaurants_reservations": True},
        "hours": [{"is_open_now": True}],
    })


@pytest.fixture
def calm_reviews():
    return [
        Review(text="Such a quiet and peaceful spot. Soft lighting and plenty of space to read.", rating=5,
               user={"name": "Ana"}),
        Review(text="Cozy corner table, relaxing music. Never crowded on weekday afternoons.", rating=4),
        Review(text="It gets a little crowded at lunch but otherwise calm.", rating=4, user={"name": "Sam"}),
    ]


@pytest.fixture
def default_prefs():
    return UserPreferences()


@pytest.fixture
def sensitive_prefs():
    return UserPreferences(noise_sensitivity=5, light_sensitivity=5, spaciousness_preference=5)


@pytest.fixture
def rng():
    return random.Random(42)
