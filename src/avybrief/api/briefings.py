"""API endpoints for avalanche briefings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from avybrief.db.deps import get_db
from avybrief.errors import BriefingError
from avybrief.models import BriefingEnvelope
from avybrief.pipeline import BriefingSynthesizer
from avybrief.storage.briefings import SqlBriefingStore
from avybrief.storage.caches import SqlForecastCache, SqlWeatherCache

router = APIRouter(prefix="/briefings", tags=["briefings"])


class BriefingRequest(BaseModel):
    """Request body for generate/regenerate. Blank fields are rejected with 400."""

    center: str = ""
    zone: str = ""


class MessageResponse(BaseModel):
    message: str


def get_synthesizer(request: Request, db: Session = Depends(get_db)) -> BriefingSynthesizer:
    """Build a synthesizer bound to this request's session and the app-wide collaborators."""
    state = request.app.state
    return BriefingSynthesizer(
        state.forecast_source,
        state.weather_source,
        state.oracle,
        SqlBriefingStore(db),
        config=state.briefing_config,
        forecast_cache=SqlForecastCache(db),
        weather_cache=SqlWeatherCache(db),
        clock=state.clock,
        locks=state.briefing_locks,
    )


def _http_error(exc: BriefingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


@router.get("", response_model=BriefingEnvelope)
def get_briefing(
    center: str = Query(""),
    zone: str = Query(""),
    synthesizer: BriefingSynthesizer = Depends(get_synthesizer),
):
    """Return today's briefing for a zone if one exists (never generates)."""
    try:
        return synthesizer.lookup_briefing(center, zone)
    except BriefingError as e:
        raise _http_error(e) from e


@router.post("/generate", response_model=BriefingEnvelope)
def generate_briefing(
    body: BriefingRequest,
    synthesizer: BriefingSynthesizer = Depends(get_synthesizer),
):
    """Return today's briefing, generating it on first request."""
    try:
        return synthesizer.get_or_create_briefing(body.center, body.zone)
    except BriefingError as e:
        raise _http_error(e) from e


@router.post("/regenerate", response_model=MessageResponse)
def regenerate_briefing(
    body: BriefingRequest,
    synthesizer: BriefingSynthesizer = Depends(get_synthesizer),
):
    """Delete today's briefing so the next generate call starts fresh."""
    try:
        message = synthesizer.regenerate_briefing(body.center, body.zone)
    except BriefingError as e:
        raise _http_error(e) from e
    return MessageResponse(message=message)
