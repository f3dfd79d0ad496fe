"""Weather snapshot models (current + hourly + daily) for one coordinate."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class WeatherLocation(BaseModel):
    latitude: float
    longitude: float
    elevation: float | None = None
    utc_offset_seconds: int = 0  # offset of the naive local timestamps in the series


class CurrentConditions(BaseModel):
    time: str = ""
    temperature: float | None = None  # °F
    feels_like: float | None = None  # °F
    humidity: float | None = None  # %
    precipitation: float | None = None  # in
    weather_code: int | None = None
    weather_description: str = "Unknown"
    cloud_cover: float | None = None  # %
    pressure: float | None = None  # hPa (mb)
    wind_speed: float | None = None  # mph
    wind_direction: float | None = None  # deg
    wind_direction_cardinal: str = ""
    wind_gusts: float | None = None  # mph


class _AlignedSeries(BaseModel):
    """Index-aligned arrays keyed on ``time``."""

    time: list[str] = Field(default_factory=list)

    @field_validator("time")
    @classmethod
    def _iso_timestamps(cls, v: list[str]) -> list[str]:
        for value in v:
            datetime.fromisoformat(value)
        return v

    def is_aligned(self) -> bool:
        """True when every series has the same length as ``time``."""
        n = len(self.time)
        for name in type(self).model_fields:
            if name == "time":
                continue
            if len(getattr(self, name)) != n:
                return False
        return True


class HourlySeries(_AlignedSeries):
    temperature: list[float | None] = Field(default_factory=list)
    precipitation_probability: list[float | None] = Field(default_factory=list)
    precipitation: list[float | None] = Field(default_factory=list)
    snowfall: list[float | None] = Field(default_factory=list)
    cloud_cover: list[float | None] = Field(default_factory=list)
    visibility: list[float | None] = Field(default_factory=list)
    wind_speed: list[float | None] = Field(default_factory=list)
    wind_direction: list[float | None] = Field(default_factory=list)
    wind_gusts: list[float | None] = Field(default_factory=list)
    uv_index: list[float | None] = Field(default_factory=list)


class DailySeries(_AlignedSeries):
    temperature_max: list[float | None] = Field(default_factory=list)
    temperature_min: list[float | None] = Field(default_factory=list)
    precipitation_sum: list[float | None] = Field(default_factory=list)
    snowfall_sum: list[float | None] = Field(default_factory=list)
    precipitation_probability_max: list[float | None] = Field(default_factory=list)
    wind_speed_max: list[float | None] = Field(default_factory=list)
    wind_gusts_max: list[float | None] = Field(default_factory=list)
    uv_index_max: list[float | None] = Field(default_factory=list)


class WeatherSnapshot(BaseModel):
    """One fetch of current, hourly and daily weather (14 days back, 7 forward)."""

    location: WeatherLocation
    current: CurrentConditions = Field(default_factory=CurrentConditions)
    hourly: HourlySeries = Field(default_factory=HourlySeries)
    daily: DailySeries = Field(default_factory=DailySeries)
    last_updated: datetime | None = None
