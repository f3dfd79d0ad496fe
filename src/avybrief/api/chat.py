"""API endpoint for the Scout chat assistant."""

from __future__ import annotations

import logging
from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from avybrief.db.deps import get_db
from avybrief.digest.chat import ChatRequest, build_chat_context, run_chat
from avybrief.digest.llm_config import create_llm
from avybrief.storage.briefings import SqlBriefingStore
from avybrief.storage.caches import SqlForecastCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    has_context: bool = Field(default=False, alias="hasContext")


def get_chat_model(request: Request) -> BaseChatModel:
    return create_llm(request.app.state.briefing_config)


@router.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    request: Request,
    db: Session = Depends(get_db),
    llm: BaseChatModel = Depends(get_chat_model),
):
    """Answer a question, with today's briefing and forecast as context when a zone is given."""
    if not body.message.strip():
        raise HTTPException(
            status_code=400,
            detail={"kind": "invalid_request", "message": "Message is required"},
        )

    state = request.app.state
    context = ""
    if body.center and body.zone:
        today = state.clock().astimezone(timezone.utc).date().isoformat()
        briefing = SqlBriefingStore(db).get(body.center, body.zone, today)
        forecast = SqlForecastCache(db).get(body.center, body.zone, today)
        context = build_chat_context(body.center, body.zone, today, forecast, briefing)

    try:
        text = run_chat(llm, state.briefing_config, body, context)
    except Exception as e:
        logger.error("Chat model call failed", exc_info=True)
        raise HTTPException(
            status_code=502,
            detail={"kind": "chat_failed", "message": "Failed to process chat message"},
        ) from e

    return ChatResponse(response=text, has_context=bool(context))
