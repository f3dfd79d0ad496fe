"""Official avalanche forecast models (one zone, one calendar date)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from avybrief.constants import DANGER_LEVELS


def _check_danger(value: int | None) -> int | None:
    if value is not None and value not in DANGER_LEVELS:
        raise ValueError(f"danger rating must be one of {sorted(DANGER_LEVELS)}, got {value}")
    return value


class AvalancheProblem(BaseModel):
    """An avalanche problem as published by the forecast center."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = None
    likelihood: str | None = None
    min_size: str | None = None
    max_size: str | None = None
    discussion: str | None = None
    location: list[str] = Field(default_factory=list)

    @field_validator("location", mode="before")
    @classmethod
    def _location_list(cls, v):
        return v or []


class MediaUrls(BaseModel):
    large: str | None = None
    medium: str | None = None
    thumbnail: str | None = None
    original: str | None = None


class MediaItem(BaseModel):
    """A field photo attached to the official forecast."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str | None = None
    url: MediaUrls = Field(default_factory=MediaUrls)
    caption: str | None = None
    type: str | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _url_object(cls, v):
        if isinstance(v, str):
            return {"original": v}
        return v or {}


class ZoneGeometry(BaseModel):
    """GeoJSON Polygon (or MultiPolygon) of a forecast zone, ``[lon, lat]`` order."""

    type: str = "Polygon"
    coordinates: list[Any] = Field(default_factory=list)

    def outer_ring(self) -> list[list[float]] | None:
        """First ring of the (first) polygon, or None if empty."""
        if not self.coordinates:
            return None
        if self.type == "MultiPolygon":
            first_polygon = self.coordinates[0]
            return first_polygon[0] if first_polygon else None
        return self.coordinates[0] or None


class ForecastRecord(BaseModel):
    """One zone's official avalanche forecast for one date.

    ``danger_overall`` is always present. Elevation-band ratings may be
    None, meaning "not assessed" (distinct from -1, "no rating").
    """

    model_config = ConfigDict(frozen=True)

    center: str
    zone: str
    forecast_date: str  # YYYY-MM-DD
    center_id: str | None = None  # avalanche.org center_id (e.g. "SAC")
    zone_id: str | None = None
    danger_overall: int
    danger_high: int | None = None
    danger_middle: int | None = None
    danger_low: int | None = None
    travel_advice: str = ""
    forecast_url: str = ""
    bottom_line: str | None = None
    hazard_discussion: str | None = None
    weather_discussion: str | None = None
    avalanche_problems: list[AvalancheProblem] = Field(default_factory=list)
    media: list[MediaItem] = Field(default_factory=list)
    geometry: ZoneGeometry | None = None
    published_time: datetime | None = None
    has_product_data: bool = False

    @field_validator("danger_overall")
    @classmethod
    def _validate_overall(cls, v: int) -> int:
        return _check_danger(v)

    @field_validator("danger_high", "danger_middle", "danger_low")
    @classmethod
    def _validate_band(cls, v: int | None) -> int | None:
        return _check_danger(v)
