"""Data models for venues, reviews, preferences and scoring results."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from comfort_finder.tables import clamp, clamp_score, round_half_up


class CamelModel(BaseModel):
    """Base for records the web client reads in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Venue inputs ----

class Category(BaseModel):
    alias: str | None = None
    title: str | None = None

    @property
    def key(self) -> str:
        return (self.alias or self.title or "").lower()


class Location(BaseModel):
    model_config = ConfigDict(extra="allow")

    address1: str | None = None
    city: str | None = None
    state: str | None = None


class Coordinates(BaseModel):
    latitude: float | None = None
    longitude: float | None = None


class ReviewUser(BaseModel):
    name: str | None = None


class Review(BaseModel):
    """A single review as returned by the search provider."""

    model_config = ConfigDict(extra="allow")

    text: str = ""
    rating: float | None = Field(default=None, ge=0, le=5)
    user: ReviewUser | None = None

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def author(self) -> str:
        return (self.user.name if self.user else None) or "Anonymous"


class ComfortAttribute(BaseModel):
    """A {variant, label} chip shown on venue cards."""

    variant: str  # quiet / dim / spacious / cozy / wifi / default
    label: str


class ClaudeAnalysis(BaseModel):
    """Structured review analysis returned by the LLM. Every field may be missing."""

    model_config = ConfigDict(extra="ignore")

    comfort_score: int | None = None
    noise_level: str | None = None  # quiet / moderate / loud / varies
    lighting: str | None = None  # dim / natural / bright / not_mentioned
    crowding: str | None = None  # spacious / moderate / crowded / varies
    best_for: str | None = None  # working / relaxing / conversation / dates / quick_visit
    best_times: str | None = None
    summary: str | None = None
    quote: str | None = None
    warnings: str | None = None
    confidence: str | None = None  # low / medium / high

    @field_validator("comfort_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int | None:
        if value is None or value == "":
            return None
        return clamp_score(float(value))

    @field_validator("quote", "warnings", "summary", mode="before")
    @classmethod
    def _null_strings(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in ("null", "none", ""):
            return None
        return value

    # Declared last so it runs before _null_strings
    @field_validator("best_for", "best_times", "quote", "warnings", mode="before")
    @classmethod
    def _first_of_list(cls, value: Any) -> Any:
        if isinstance(value, list):
            return str(value[0]) if value else None
        return value


# ---- Derived review analysis ----

class CategoryBreakdown(CamelModel):
    score: int = 50
    mentions: int = 0
    positive: int = 0
    negative: int = 0


class ReviewSignal(CamelModel):
    category: str
    text: str
    sentiment: str  # positive / negative
    icon: str = "circle"


class ReviewAnalysis(CamelModel):
    sentiment_score: int = 50
    confidence: int = 0
    review_count: int = 0
    total_mentions: int = 0
    highlights: list[ReviewSignal] = Field(default_factory=list)
    concerns: list[ReviewSignal] = Field(default_factory=list)
    breakdown: dict[str, CategoryBreakdown] = Field(default_factory=dict)


class ComfortQuote(BaseModel):
    text: str
    sentiment: str
    keyword: str
    user: str = "Anonymous"


# ---- Venue ----

class Venue(BaseModel):
    """A venue from the search provider plus the comfort fields we attach.

    Unknown provider fields are kept so nested lookups such as
    ``attributes.outdoor_seating`` or ``hours[0].is_open_now`` still work.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    name: str = "Unknown"
    categories: list[Category] = Field(default_factory=list)
    price: str | None = None  # "$" .. "$$$$"
    rating: float | None = None
    location: Location | None = None
    coordinates: Coordinates | None = None

    # Sensory attributes (often inferred)
    noise_level: str | None = None  # quiet / average / loud / very_loud
    ambiance: list[str] = Field(default_factory=list)
    outdoor_seating: bool | None = None
    reservations: bool | None = None
    wifi: str | bool | None = None

    reviews: list[Review] | None = None

    # Computed comfort fields
    comfort_score: int | None = None
    comfort_attributes: list[ComfortAttribute] = Field(default_factory=list)
    recommendation_reason: str | None = None
    review_comfort_summary: str | None = None
    claude_analysis: ClaudeAnalysis | None = Field(default=None, alias="claudeAnalysis")
    review_analysis: ReviewAnalysis | None = Field(default=None, alias="reviewAnalysis")
    comfort_quotes: list[ComfortQuote] = Field(default_factory=list, alias="comfortQuotes")

    @field_validator("categories", mode="before")
    @classmethod
    def _coerce_categories(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, dict)):
            value = [value]
        return [{"alias": c, "title": c} if isinstance(c, str) else c for c in value]

    @field_validator("ambiance", mode="before")
    @classmethod
    def _coerce_ambiance(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Any:
        if isinstance(value, int):
            return "$" * value if value > 0 else None
        return value

    @field_validator("noise_level", mode="before")
    @classmethod
    def _lower_noise(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("comfort_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int | None:
        if value is None or value == "":
            return None
        return clamp_score(float(value))

    @field_validator("comfort_attributes", mode="after")
    @classmethod
    def _cap_attributes(cls, value: list[ComfortAttribute]) -> list[ComfortAttribute]:
        return value[:4]

    @property
    def category_aliases(self) -> list[str]:
        return [c.key for c in self.categories if c.key]


# ---- Preferences ----

class UserPreferences(CamelModel):
    """Sensory preferences saved by the onboarding flow."""

    noise_sensitivity: int = 3
    light_sensitivity: int = 3
    spaciousness_preference: int = 3
    location: str = ""
    other_needs: str = ""
    onboarding_complete: bool = False

    @field_validator("noise_sensitivity", "light_sensitivity", "spaciousness_preference", mode="before")
    @classmethod
    def _clamp_level(cls, value: Any) -> int:
        if value is None or value == "":
            return 3
        return round_half_up(clamp(float(value), 1, 5))


# ---- Scoring results ----

class ScoreFactor(BaseModel):
    factor: str
    impact: float


class ComfortResult(BaseModel):
    score: int
    factors: list[ScoreFactor] = Field(default_factory=list)
    label: str


class SensoryCategoryMatch(CamelModel):
    score: int
    user_preference: int
    venue_level: str
    match: str  # excellent / good / moderate / poor
    description: str


class SensoryMatch(BaseModel):
    overall: int
    breakdown: dict[str, SensoryCategoryMatch]


class TimePrediction(BaseModel):
    level: str  # quiet / moderate / busy
    score: int
    confidence: int


class HourlyComfort(TimePrediction):
    hour: int
    label: str


class BestTimeWindow(CamelModel):
    start_hour: int
    end_hour: int
    label: str
    score: int = 85


# ---- Follow-up ----

class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FollowUpClassification(CamelModel):
    is_filter: bool
    is_new_search: bool
    detected_filters: list[str] = Field(default_factory=list)
    matched_patterns: int = 0
    confidence: Confidence = Confidence.HIGH


class FilterResult(CamelModel):
    filtered: list[Venue] = Field(default_factory=list)
    applied: list[str] = Field(default_factory=list)
    no_match: bool = False


# ---- Outings ----

class StopType(str, Enum):
    COFFEE = "coffee"
    LUNCH = "lunch"
    DINNER = "dinner"
    DRINKS = "drinks"
    SHOPPING = "shopping"
    ACTIVITY = "activity"


class Stop(BaseModel):
    """One stop in an outing. ``type`` is usually a :class:`StopType` value."""

    model_config = ConfigDict(extra="allow")

    venue: Venue | None = None
    type: str | None = None
    time: str | None = Field(default=None, pattern=r"^\d{1,2}:\d{2}$")  # HH:MM
    duration: int | None = None  # minutes
    comfort_score: int | None = None

    @field_validator("comfort_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int | None:
        if value is None or value == "":
            return None
        return clamp_score(float(value))


class Outing(BaseModel):
    id: str
    name: str = "My Outing"
    date: str
    stops: list[Stop] = Field(default_factory=list)
    total_comfort: int = 0
    created_at: str | None = None
    updated_at: str | None = None
