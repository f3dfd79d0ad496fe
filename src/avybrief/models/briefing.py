"""Briefing models: validated AI payload, persisted briefing, response envelope."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BriefingProblem(BaseModel):
    """One avalanche problem as explained in the briefing."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    likelihood: str = ""
    size: str = ""
    official_source: bool | None = Field(default=None, alias="officialSource")


class BriefingPayload(BaseModel):
    """The JSON object the text-generation model must return."""

    model_config = ConfigDict(populate_by_name=True)

    briefing: str
    problems: list[BriefingProblem] = Field(default_factory=list)
    source_url: str | None = Field(default=None, alias="sourceUrl")
    source_center: str | None = Field(default=None, alias="sourceCenter")
    disclaimer: str | None = None
    field_observation_prompts: list[str] = Field(
        default_factory=list, alias="fieldObservationPrompts"
    )

    @field_validator("briefing")
    @classmethod
    def _non_empty_briefing(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("briefing text is empty")
        return v


class Briefing(BaseModel):
    """A persisted briefing, one per (center, zone, forecast_date)."""

    id: int | None = None
    center: str
    zone: str
    forecast_date: str  # YYYY-MM-DD
    danger_level: int
    briefing_text: str
    problems: list[BriefingProblem] = Field(default_factory=list)
    source_url: str | None = None
    source_center: str | None = None
    disclaimer: str | None = None
    field_observation_prompts: list[str] = Field(default_factory=list)
    created_at: datetime


class StalenessAssessment(BaseModel):
    """Age of a reference timestamp relative to now."""

    reference_time: datetime
    elapsed_hours: float
    elapsed_ms: int
    threshold_hours: float
    is_stale: bool


class BriefingEnvelope(BaseModel):
    """Response returned by the briefing operations."""

    model_config = ConfigDict(populate_by_name=True)

    briefing: Briefing | None = None
    cached: bool = False
    stale_data: bool | None = Field(default=None, alias="staleData")
    data_age: int | None = Field(default=None, alias="dataAge")  # milliseconds
    staleness_warning: str | None = Field(default=None, alias="stalenessWarning")
