"""Scout chat assistant: answers questions with today's conditions as context."""

from __future__ import annotations

import logging
from typing import Literal

from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, ConfigDict, Field

from avybrief.constants import ELEVATION_BANDS
from avybrief.digest.llm_config import BriefingConfig, message_text
from avybrief.digest.prompt_builder import CONTEXT_PLACEHOLDER, danger_text
from avybrief.models import Briefing, ForecastRecord

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    conversation_history: list[ChatMessage] = Field(
        default_factory=list, alias="conversationHistory"
    )
    center: str | None = None
    zone: str | None = None


def build_chat_context(
    center: str,
    zone: str,
    today: str,
    forecast: ForecastRecord | None,
    briefing: Briefing | None,
) -> str:
    """Current-conditions context for the system prompt, or "" if nothing is known."""
    if forecast is None and briefing is None:
        return ""

    lines = [
        "**CURRENT AVALANCHE CONDITIONS CONTEXT**",
        f"Location: {zone}, {center}",
        f"Date: {today}",
    ]

    if forecast is not None:
        lines.append("")
        lines.append("CURRENT DANGER LEVELS:")
        lines.append(f"- Overall: {danger_text(forecast.danger_overall)}")
        for band in ("high", "middle", "low"):
            level = getattr(forecast, f"danger_{band}")
            if level is not None:
                lines.append(f"- {ELEVATION_BANDS[band]}: {danger_text(level)}")
        if forecast.travel_advice:
            lines.append("")
            lines.append(f"OFFICIAL TRAVEL ADVICE:\n{forecast.travel_advice}")

    if briefing is not None:
        lines.append("")
        lines.append(f"BRIEFING SUMMARY:\n{briefing.briefing_text}")
        if briefing.problems:
            lines.append("")
            lines.append("IDENTIFIED AVALANCHE PROBLEMS:")
            for n, problem in enumerate(briefing.problems, start=1):
                lines.append(f"{n}. {problem.name} - {problem.likelihood}, {problem.size}")
                if problem.description:
                    lines.append(f"   {problem.description}")

    return "\n".join(lines)


def build_system_prompt(config: BriefingConfig, context: str) -> str:
    if context:
        preface = (
            "You have the current avalanche forecast and briefing below. "
            "Use it to give specific, relevant answers about today's conditions.\n\n"
        )
    else:
        preface = (
            "No forecast location is selected. Give general avalanche safety "
            "education and suggest choosing a zone for specifics."
        )
    return config.load_prompt("chat").replace(CONTEXT_PLACEHOLDER, preface + context)


def run_chat(
    llm: BaseChatModel,
    config: BriefingConfig,
    request: ChatRequest,
    context: str = "",
) -> str:
    """Send the conversation to the chat model and return its reply text."""
    messages = [{"role": "system", "content": build_system_prompt(config, context)}]
    for msg in request.conversation_history:
        messages.append({"role": msg.role, "content": msg.content})
    messages.append({"role": "user", "content": request.message})

    logger.info(
        "Chat request (%d history messages, context=%s)",
        len(request.conversation_history), bool(context),
    )
    result = llm.invoke(messages)
    return message_text(result.content)
