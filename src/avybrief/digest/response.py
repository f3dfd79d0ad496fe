"""Validation of the text-generation model's briefing answer.

The model's output is untrusted: it may be wrapped in a markdown fence,
may not be JSON at all, or may omit fields the contract requires.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from avybrief.errors import IncompleteAiResponse, MalformedAiResponse
from avybrief.models import BriefingPayload

logger = logging.getLogger(__name__)

_LEADING_FENCE_RE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"```$")

LIABILITY_FIELDS = ("disclaimer", "source_url")


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json (or bare ```) fence and a trailing ``` fence."""
    text = text.strip()
    text = _LEADING_FENCE_RE.sub("", text, count=1)
    text = _TRAILING_FENCE_RE.sub("", text, count=1)
    return text.strip()


def parse_oracle_json(text: str) -> Any:
    """Strip fences and parse as JSON. Raises MalformedAiResponse on failure."""
    cleaned = strip_code_fence(text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("Model response is not valid JSON: %s", e)
        raise MalformedAiResponse(f"AI response is not valid JSON: {e.msg}") from e


def parse_briefing_response(text: str, require_liability: bool = True) -> BriefingPayload:
    """Parse and validate a briefing answer.

    Raises:
        MalformedAiResponse: not JSON, or fields of the wrong type/shape.
        IncompleteAiResponse: ``require_liability`` is set and the
            disclaimer or source URL is missing or blank.
    """
    data = parse_oracle_json(text)
    if not isinstance(data, dict):
        raise MalformedAiResponse("AI response must be a JSON object")

    try:
        payload = BriefingPayload.model_validate(data)
    except ValidationError as e:
        logger.warning("Model response failed validation: %s", e)
        raise MalformedAiResponse(
            f"AI response has invalid fields: {e.error_count()} error(s)"
        ) from e

    if require_liability:
        missing = [
            name for name in LIABILITY_FIELDS
            if not (getattr(payload, name) or "").strip()
        ]
        if missing:
            raise IncompleteAiResponse(
                f"AI response is missing required field(s): {', '.join(missing)}",
                missing=missing,
            )

    return payload
