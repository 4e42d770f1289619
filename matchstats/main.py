"""
Live Match Stats - FastAPI Application
Serves derived match statistics from a live event stream
"""
import logging
from contextlib import asynccontextmanager
from typing import List

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query

from config.settings import settings
from matchstats.live_stats import StatsConfig, StatsProvider, get_stats_provider
from matchstats.schemas import (
    GoalSchema,
    MatchSchema,
    PeriodSchema,
    ScoreSchema,
    ShotSchema,
    StateResponse,
    StatsResponse,
    StreamRequest,
    SubstitutionSchema,
    event_to_dict,
)
from matchstats.stats import ViewKind, aggregate

load_dotenv()

# Configure logging for the whole service
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger("matchstats.api")

# Version tracking
APP_VERSION = "v0.1.0"
APP_NAME = "Live Match Stats"

DEFAULT_TYPES = "score,period,goals"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to the configured endpoint, if any, and disconnect on shutdown."""
    provider = get_stats_provider()
    if settings.default_endpoint_url:
        provider.connect(settings.default_endpoint_url)
    yield
    provider.disconnect()


app = FastAPI(
    title=APP_NAME,
    description="Live match statistics derived from an event stream",
    version=APP_VERSION,
    lifespan=lifespan,
)


def _parse_types(types: str) -> List[ViewKind]:
    kinds = []
    for name in types.split(","):
        name = name.strip()
        if not name:
            continue
        try:
            kinds.append(ViewKind(name))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown view type: {name}")
    return kinds


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}",
    }


# =============================================================================
# STREAM API
# =============================================================================

@app.post("/api/stream", response_model=StateResponse)
def connect_stream(
    request: StreamRequest,
    provider: StatsProvider = Depends(get_stats_provider),
):
    """Attach to an event endpoint, replacing the current one."""
    base = provider.config
    config = StatsConfig(
        refresh_interval=request.refresh_interval if request.refresh_interval is not None else base.refresh_interval,
        period_count=request.period_count if request.period_count is not None else base.period_count,
        flush_delay=base.flush_delay,
        tick_interval=base.tick_interval,
        request_timeout=base.request_timeout,
    )
    logger.info(f"Stream requested: {request.endpoint_url}")
    provider.connect(request.endpoint_url, config=config)
    return _state_response(provider)


@app.delete("/api/stream", response_model=StateResponse)
def disconnect_endpoint(provider: StatsProvider = Depends(get_stats_provider)):
    """Detach from the current event endpoint."""
    provider.disconnect()
    return _state_response(provider)


@app.get("/api/state", response_model=StateResponse)
def stream_state(provider: StatsProvider = Depends(get_stats_provider)):
    """Current endpoint, published log size and server time."""
    return _state_response(provider)


def _state_response(provider: StatsProvider) -> StateResponse:
    state = provider.state
    return StateResponse(
        connected=provider.session is not None,
        endpoint_url=provider.endpoint_url,
        event_count=len(state.event_log),
        server_time=state.server_time,
    )


# =============================================================================
# STATS API
# =============================================================================

@app.get("/api/stats", response_model=StatsResponse)
def match_stats(
    types: str = Query(DEFAULT_TYPES, description="Comma-separated view types"),
    provider: StatsProvider = Depends(get_stats_provider),
):
    """
    Run one aggregation pass on the latest published state.

    The match view is always included. When the match is not yet known
    the other views come back in their neutral form.
    """
    kinds = _parse_types(types)
    session = provider.session
    if session is None:
        raise HTTPException(status_code=404, detail="No event stream connected")

    state = session.state
    stats = aggregate(
        state.event_log,
        kinds,
        server_time=state.server_time,
        period_count=session.config.period_count,
    )
    response = StatsResponse(endpoint_url=session.endpoint_url, server_time=state.server_time)

    match = stats.get("match")
    if match is not None:
        response.match = MatchSchema.from_match(match)
    if ViewKind.SCORE in kinds and stats["score"] is not None:
        response.score = ScoreSchema.from_score(stats["score"])
    if ViewKind.PERIOD in kinds:
        response.period = {k: PeriodSchema.from_state(v) for k, v in stats["period"].items()}
    if ViewKind.GOALS in kinds:
        response.goals = [GoalSchema.from_entry(g) for g in stats["goals"]]
    if ViewKind.SUBSTITUTIONS in kinds:
        response.substitutions = [SubstitutionSchema.from_entry(s) for s in stats["substitutions"]]
    if ViewKind.SHOTS in kinds:
        response.shots = [ShotSchema.from_shot(s) for s in stats["shots"]]
    if ViewKind.RAW in kinds:
        response.raw = [event_to_dict(e) for e in stats["raw"]]

    return response
