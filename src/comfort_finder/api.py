"""FastAPI wrapper for the comfort scoring engine.

Exposes scoring, detail analysis, follow-up filtering and outings over HTTP
for the web client.

GET  /health            : health check
POST /score             : score a single venue
POST /venues/enrich     : enrich and rank a result set
POST /venue/details     : full detail view (reviews, sensory match, best times)
POST /follow-up         : classify a chat message and filter previous results
POST /outings/comfort   : comfort + duration for a list of stops
GET/POST/DELETE /outings : saved outings
"""

from __future__ import annotations

import logging
import os
import random
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Header
from pydantic import BaseModel, Field, ValidationError

from comfort_finder.claude_analysis import analyze_reviews_with_claude
from comfort_finder.comfort_score import calculate_comfort_score
from comfort_finder.config import configure_logging, load_config
from comfort_finder.enrichment import enhance_venue, enhance_venues, enrich_with_reviews
from comfort_finder.followup import analyze_follow_up, filter_venues, generate_filter_response
from comfort_finder.models import (
    BestTimeWindow,
    ComfortQuote,
    ComfortResult,
    FollowUpClassification,
    HourlyComfort,
    Outing,
    Review,
    ReviewAnalysis,
    SensoryMatch,
    Stop,
    UserPreferences,
    Venue,
)
from comfort_finder.outing_store import get_outing_store
from comfort_finder.outings import calculate_outing_comfort, calculate_total_duration, format_duration
from comfort_finder.sensory_match import calculate_sensory_match
from comfort_finder.tables import comfort_label
from comfort_finder.time_comfort import get_best_times, get_hourly_comfort, get_time_recommendation

logger = logging.getLogger(__name__)


# ---- Request / Response models ----

class ScoreRequest(BaseModel):
    venue: Venue
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    seed: int | None = None  # pin the recommendation text


class ScoreResponse(BaseModel):
    venue: Venue
    result: ComfortResult


class EnrichRequest(BaseModel):
    venues: list[Venue]
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    seed: int | None = None
    limit: int | None = None


class EnrichResponse(BaseModel):
    status: str = "success"
    venue_count: int = 0
    venues: list[Venue] = Field(default_factory=list)


class DetailsRequest(BaseModel):
    venue: Venue
    reviews: list[Review] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    is_weekend: bool = False
    analyze_with_llm: bool = False
    seed: int | None = None


class DetailsResponse(BaseModel):
    venue: Venue
    review_analysis: ReviewAnalysis
    comfort_quotes: list[ComfortQuote]
    sensory_match: SensoryMatch
    hourly_comfort: list[HourlyComfort]
    best_times: list[BestTimeWindow]
    time_recommendation: str


class FollowUpRequest(BaseModel):
    message: str = ""
    previous_venues: list[Venue] = Field(default_factory=list)


class FollowUpResponse(BaseModel):
    classification: FollowUpClassification
    venues: list[Venue] = Field(default_factory=list)
    applied: list[str] = Field(default_factory=list)
    no_match: bool = False
    message: str | None = None


class OutingComfortRequest(BaseModel):
    stops: list[Stop] = Field(default_factory=list)


class OutingComfortResponse(BaseModel):
    total_comfort: int
    total_duration: int
    duration_label: str


# ---- App ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    configure_logging(config.log_level)
    missing = config.validate_keys()
    if "ANTHROPIC_API_KEY" in missing:
        logger.warning("ANTHROPIC_API_KEY not set, LLM review analysis disabled")
    if not config.notion_enabled:
        logger.info("Notion not configured, outings stored in %s", config.outings_path)
    yield


app = FastAPI(
    title="Comfort Finder",
    version="0.1.0",
    lifespan=lifespan,
)


def _check_auth(authorization: str | None):
    """Check API key if API_SECRET is configured."""
    secret = load_config().api_secret
    if not secret:
        return  # no auth required
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    # Accept "Bearer <token>" or just "<token>"
    token = authorization.replace("Bearer ", "").strip()
    if token != secret:
        raise HTTPException(status_code=403, detail="Invalid API key")


def _rng(seed: int | None) -> random.Random | None:
    return random.Random(seed) if seed is not None else None


@app.get("/health")
async def health():
    return {"status": "ok", "service": "comfort-finder"}


@app.post("/score", response_model=ScoreResponse, response_model_by_alias=True)
async def score(request: ScoreRequest, authorization: str | None = Header(default=None)):
    """Enrich one venue and return its score breakdown."""
    _check_auth(authorization)
    venue = enhance_venue(request.venue, request.preferences, _rng(request.seed))
    result = calculate_comfort_score(venue, request.preferences)
    # Factors explain the computed score; score and label follow the resolved one
    if venue.comfort_score is not None:
        result = result.model_copy(update={"score": venue.comfort_score, "label": comfort_label(venue.comfort_score)})
    return ScoreResponse(venue=venue, result=result)


@app.post("/venues/enrich", response_model=EnrichResponse, response_model_by_alias=True)
async def enrich(request: EnrichRequest, authorization: str | None = Header(default=None)):
    """Enrich a search result set and sort it calmest first."""
    _check_auth(authorization)
    venues = enhance_venues(request.venues, request.preferences, _rng(request.seed), request.limit)
    return EnrichResponse(venue_count=len(venues), venues=venues)


@app.post("/venue/details", response_model=DetailsResponse, response_model_by_alias=True)
async def venue_details(request: DetailsRequest, authorization: str | None = Header(default=None)):
    """Everything the venue page shows."""
    _check_auth(authorization)

    claude = None
    if request.analyze_with_llm:
        claude = analyze_reviews_with_claude(request.venue, request.reviews, load_config(), request.preferences)

    venue = enrich_with_reviews(request.venue, request.reviews, request.preferences, _rng(request.seed), claude)
    return DetailsResponse(
        venue=venue,
        review_analysis=venue.review_analysis,
        comfort_quotes=venue.comfort_quotes,
        sensory_match=calculate_sensory_match(venue, request.preferences),
        hourly_comfort=get_hourly_comfort(venue, request.is_weekend),
        best_times=get_best_times(venue),
        time_recommendation=get_time_recommendation(venue),
    )


@app.post("/follow-up", response_model=FollowUpResponse, response_model_by_alias=True)
async def follow_up(request: FollowUpRequest, authorization: str | None = Header(default=None)):
    """Decide whether a message filters the previous results, and filter them if so."""
    _check_auth(authorization)

    classification = analyze_follow_up(request.message, bool(request.previous_venues))
    if not classification.is_filter:
        return FollowUpResponse(classification=classification)

    result = filter_venues(request.previous_venues, classification.detected_filters)
    message = None
    if result.applied:
        message = generate_filter_response(result.filtered, result.applied, request.previous_venues)
    return FollowUpResponse(
        classification=classification,
        venues=result.filtered,
        applied=result.applied,
        no_match=result.no_match,
        message=message,
    )


@app.post("/outings/comfort", response_model=OutingComfortResponse)
async def outing_comfort(request: OutingComfortRequest, authorization: str | None = Header(default=None)):
    _check_auth(authorization)
    duration = calculate_total_duration(request.stops)
    return OutingComfortResponse(
        total_comfort=calculate_outing_comfort(request.stops),
        total_duration=duration,
        duration_label=format_duration(duration),
    )


@app.get("/outings", response_model=list[Outing])
async def list_outings(authorization: str | None = Header(default=None)):
    _check_auth(authorization)
    return get_outing_store(load_config()).list()


@app.get("/outings/{outing_id}", response_model=Outing)
async def get_outing(outing_id: str, authorization: str | None = Header(default=None)):
    _check_auth(authorization)
    outing = get_outing_store(load_config()).get(outing_id)
    if outing is None:
        raise HTTPException(status_code=404, detail=f"Outing '{outing_id}' not found")
    return outing


@app.post("/outings", response_model=Outing)
async def save_outing(outing: dict, authorization: str | None = Header(default=None)):
    """Create or update an outing; ``total_comfort`` is always recomputed."""
    _check_auth(authorization)
    try:
        saved = get_outing_store(load_config()).save(outing)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    if saved is None:
        raise HTTPException(status_code=502, detail="Could not save outing")
    return saved


@app.delete("/outings/{outing_id}")
async def delete_outing(outing_id: str, authorization: str | None = Header(default=None)):
    _check_auth(authorization)
    if not get_outing_store(load_config()).delete(outing_id):
        raise HTTPException(status_code=404, detail=f"Outing '{outing_id}' not found")
    return {"status": "deleted", "id": outing_id}


def start_server(host: str = "0.0.0.0", port: int = 8000):
    """Start the API server (used by the CLI)."""
    import uvicorn
    uvicorn.run(
        "comfort_finder.api:app",
        host=host,
        port=int(os.getenv("PORT", port)),
        reload=False,
    )


if __name__ == "__main__":
    start_server()
