"""Error taxonomy for the briefing pipeline.

Every error carries an :class:`ErrorKind` and an HTTP status so the API
layer can tell callers apart "try again later" (forecast unavailable,
persistence), "data integrity" (malformed/incomplete AI output) and
"caller mistake" (invalid request).
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    FORECAST_UNAVAILABLE = "forecast_unavailable"
    WEATHER_UNAVAILABLE = "weather_unavailable"
    MALFORMED_AI_RESPONSE = "malformed_ai_response"
    INCOMPLETE_AI_RESPONSE = "incomplete_ai_response"
    PERSISTENCE_ERROR = "persistence_error"
    BRIEFING_CONFLICT = "briefing_conflict"


class BriefingError(Exception):
    """Base class for all briefing pipeline errors."""

    kind: ErrorKind = ErrorKind.PERSISTENCE_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class InvalidRequest(BriefingError):
    kind = ErrorKind.INVALID_REQUEST
    status_code = 400


class ForecastUnavailable(BriefingError):
    kind = ErrorKind.FORECAST_UNAVAILABLE
    status_code = 404


class WeatherUnavailable(BriefingError):
    """Weather enrichment failed. Recovered locally, never surfaced."""

    kind = ErrorKind.WEATHER_UNAVAILABLE
    status_code = 503


class MalformedAiResponse(BriefingError):
    kind = ErrorKind.MALFORMED_AI_RESPONSE
    status_code = 502


class IncompleteAiResponse(BriefingError):
    kind = ErrorKind.INCOMPLETE_AI_RESPONSE
    status_code = 502

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class PersistenceError(BriefingError):
    kind = ErrorKind.PERSISTENCE_ERROR
    status_code = 503


class BriefingConflict(PersistenceError):
    """A briefing already exists for the key (lost a concurrent insert)."""

    kind = ErrorKind.BRIEFING_CONFLICT
    status_code = 409
