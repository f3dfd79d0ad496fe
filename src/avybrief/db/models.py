"""SQLAlchemy ORM models for briefings and the upstream data caches."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BriefingRow(Base):
    __tablename__ = "avalanche_briefings"
    __table_args__ = (
        UniqueConstraint("center", "zone", "forecast_date", name="uq_briefing_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    center: Mapped[str] = mapped_column(String(128))
    zone: Mapped[str] = mapped_column(String(256))
    forecast_date: Mapped[str] = mapped_column(String(10), index=True)
    danger_level: Mapped[int] = mapped_column(Integer)
    briefing_text: Mapped[str] = mapped_column(Text)
    problems_json: Mapped[str] = mapped_column(Text, default="[]")
    source_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_center: Mapped[str | None] = mapped_column(String(128), nullable=True)
    disclaimer: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_observation_prompts_json: Mapped[str] = mapped_column(Text, default="[]")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ForecastCacheRow(Base):
    __tablename__ = "avalanche_forecasts"
    __table_args__ = (
        UniqueConstraint("center", "zone", "forecast_date", name="uq_forecast_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    center: Mapped[str] = mapped_column(String(128))
    zone: Mapped[str] = mapped_column(String(256))
    forecast_date: Mapped[str] = mapped_column(String(10), index=True)
    danger_overall: Mapped[int] = mapped_column(Integer)
    payload_json: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class WeatherCacheRow(Base):
    __tablename__ = "weather_data"
    __table_args__ = (
        UniqueConstraint("center", "zone", "forecast_date", name="uq_weather_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    center: Mapped[str] = mapped_column(String(128))
    zone: Mapped[str] = mapped_column(String(256))
    forecast_date: Mapped[str] = mapped_column(String(10), index=True)
    latitude: Mapped[float] = mapped_column()
    longitude: Mapped[float] = mapped_column()
    payload_json: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
