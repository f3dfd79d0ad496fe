"""Caches for upstream data: official forecasts and zone weather."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from avybrief.constants import WEATHER_CACHE_WINDOW
from avybrief.db.models import ForecastCacheRow, WeatherCacheRow
from avybrief.models import ForecastRecord, WeatherSnapshot
from avybrief.storage.briefings import as_utc

logger = logging.getLogger(__name__)


class SqlForecastCache:
    """Forecast records keyed by (center, zone, forecast_date).

    A forecast is immutable once produced for a date, so entries never
    expire within their day.
    """

    def __init__(self, session: Session):
        self.session = session

    def _row(self, center: str, zone: str, forecast_date: str) -> ForecastCacheRow | None:
        stmt = select(ForecastCacheRow).where(
            ForecastCacheRow.center == center,
            ForecastCacheRow.zone == zone,
            ForecastCacheRow.forecast_date == forecast_date,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get(self, center: str, zone: str, forecast_date: str) -> ForecastRecord | None:
        row = self._row(center, zone, forecast_date)
        if row is None:
            return None
        return ForecastRecord.model_validate_json(row.payload_json)

    def put(self, record: ForecastRecord) -> None:
        payload = record.model_dump_json()
        try:
            row = self._row(record.center, record.zone, record.forecast_date)
            if row is None:
                self.session.add(ForecastCacheRow(
                    center=record.center,
                    zone=record.zone,
                    forecast_date=record.forecast_date,
                    danger_overall=record.danger_overall,
                    payload_json=payload,
                ))
            else:
                row.danger_overall = record.danger_overall
                row.payload_json = payload
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise


class SqlWeatherCache:
    """Weather snapshots keyed by (center, zone, forecast_date), fresh for 6 hours."""

    def __init__(self, session: Session, window=WEATHER_CACHE_WINDOW):
        self.session = session
        self.window = window

    def _row(self, center: str, zone: str, forecast_date: str) -> WeatherCacheRow | None:
        stmt = select(WeatherCacheRow).where(
            WeatherCacheRow.center == center,
            WeatherCacheRow.zone == zone,
            WeatherCacheRow.forecast_date == forecast_date,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get(
        self, center: str, zone: str, forecast_date: str, now: datetime
    ) -> WeatherSnapshot | None:
        row = self._row(center, zone, forecast_date)
        if row is None:
            return None
        if as_utc(now) - as_utc(row.created_at) > self.window:
            logger.debug("Weather cache expired for %s/%s", center, zone)
            return None
        return WeatherSnapshot.model_validate_json(row.payload_json)

    def put(
        self, center: str, zone: str, forecast_date: str,
        snapshot: WeatherSnapshot, now: datetime,
    ) -> None:
        payload = snapshot.model_dump_json()
        try:
            row = self._row(center, zone, forecast_date)
            if row is None:
                self.session.add(WeatherCacheRow(
                    center=center,
                    zone=zone,
                    forecast_date=forecast_date,
                    latitude=snapshot.location.latitude,
                    longitude=snapshot.location.longitude,
                    payload_json=payload,
                    created_at=now,
                ))
            else:
                row.latitude = snapshot.location.latitude
                row.longitude = snapshot.location.longitude
                row.payload_json = payload
                row.created_at = now
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
