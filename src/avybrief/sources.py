"""Interfaces of the collaborators the briefing pipeline depends on.

Concrete implementations live in ``avybrief.fetch`` (HTTP clients),
``avybrief.digest.llm_config`` (chat model) and ``avybrief.storage``
(SQLAlchemy stores). Tests substitute simple in-memory doubles.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from avybrief.models import Briefing, ForecastRecord, WeatherSnapshot


class ForecastSource(Protocol):
    def get_forecast(self, center: str, zone: str, forecast_date: str) -> ForecastRecord | None:
        """Return the zone's forecast for the date, or None if not published."""
        ...


class WeatherSource(Protocol):
    def get_weather(self, lat: float, lon: float) -> WeatherSnapshot:
        """Return current + historical + near-future weather. Raises on failure."""
        ...


class TextGenerationOracle(Protocol):
    def generate(self, prompt: str) -> str:
        """Return the raw text completion for ``prompt``."""
        ...


class BriefingStore(Protocol):
    def get(self, center: str, zone: str, forecast_date: str) -> Briefing | None: ...

    def insert(self, briefing: Briefing) -> Briefing:
        """Insert if no briefing exists for the key.

        Raises ``BriefingConflict`` when one does, ``PersistenceError`` on
        any other store failure.
        """
        ...

    def delete(self, center: str, zone: str, forecast_date: str) -> int: ...


class ForecastCache(Protocol):
    def get(self, center: str, zone: str, forecast_date: str) -> ForecastRecord | None: ...

    def put(self, record: ForecastRecord) -> None: ...


class WeatherCache(Protocol):
    def get(
        self, center: str, zone: str, forecast_date: str, now: datetime
    ) -> WeatherSnapshot | None: ...

    def put(
        self, center: str, zone: str, forecast_date: str,
        snapshot: WeatherSnapshot, now: datetime,
    ) -> None: ...
