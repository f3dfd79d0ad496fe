"""Shared test fixtures."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from avybrief.db.models import Base
from avybrief.digest.llm_config import BriefingConfig, ContractPolicy
from avybrief.models import (
    AvalancheProblem,
    CurrentConditions,
    DailySeries,
    ForecastRecord,
    HourlySeries,
    WeatherLocation,
    WeatherSnapshot,
    ZoneGeometry,
)

FIXED_NOW = datetime(2026, 1, 15, 18, 0, 0, tzinfo=timezone.utc)
TODAY = "2026-01-15"

CENTER = "Sierra Avalanche Center"
ZONE = "Central Sierra"


# --- Database ---


@pytest.fixture
def db_engine():
    """In-memory SQLite engine for tests."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Yield a SQLAlchemy session per test, rolled back after."""
    session = sessionmaker(bind=db_engine)()
    yield session
    session.rollback()
    session.close()


# --- Clock ---


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


# --- Forecasts ---


@pytest.fixture
def sample_forecast():
    """Considerable danger, no geometry, no product data."""
    return ForecastRecord(
        center=CENTER,
        zone=ZONE,
        forecast_date=TODAY,
        danger_overall=3,
        danger_high=3,
        danger_middle=2,
        danger_low=None,
        travel_advice="Careful snowpack evaluation is essential.",
        forecast_url="https://www.sierraavalanchecenter.org/forecasts#/central-sierra-nevada",
    )


@pytest.fixture
def square_geometry():
    return ZoneGeometry(
        type="Polygon",
        coordinates=[[[0.0, 0.0], [2.0, 0.0], [2.0, 2.0], [0.0, 2.0]]],
    )


@pytest.fixture
def full_forecast(sample_forecast, square_geometry):
    """Forecast with geometry and product data, published 2 hours before FIXED_NOW."""
    return sample_forecast.model_copy(update={
        "geometry": square_geometry,
        "bottom_line": "<p>Wind slabs &amp; persistent slabs near ridgelines.</p>",
        "hazard_discussion": "<p>Recent loading on <strong>NE</strong> aspects.</p>",
        "weather_discussion": "<p>Cold and windy.</p>",
        "avalanche_problems": [
            AvalancheProblem(
                name="Wind Slab",
                likelihood="likely",
                min_size="1",
                max_size="2",
                discussion="<p>Fresh drifts below ridges.</p>",
                location=["north upper", "northeast upper"],
            ),
            AvalancheProblem(),
        ],
        "published_time": FIXED_NOW - timedelta(hours=2),
        "has_product_data": True,
    })


# --- Weather ---


def make_weather(today: str = TODAY, history_days: int = 14, forward_days: int = 7) -> WeatherSnapshot:
    """Aligned snapshot with ``history_days`` before today and hourly data from today 00:00 UTC."""
    start = date.fromisoformat(today) - timedelta(days=history_days)
    n_days = history_days + forward_days
    days = [(start + timedelta(days=i)).isoformat() for i in range(n_days)]
    # 1" of snow every other day in the history, nothing after
    snow = [1.0 if i < history_days and i % 2 == 0 else 0.0 for i in range(n_days)]

    hours_start = datetime.fromisoformat(f"{today}T00:00")
    hours = [(hours_start + timedelta(hours=h)).isoformat(timespec="minutes") for h in range(72)]

    return WeatherSnapshot(
        location=WeatherLocation(latitude=1.0, longitude=1.0, elevation=2500.0),
        current=CurrentConditions(
            time=f"{today}T18:00",
            temperature=24.6,
            feels_like=15.2,
            humidity=80,
            precipitation=0.0,
            weather_code=3,
            weather_description="Overcast",
            cloud_cover=100,
            pressure=1015.4,
            wind_speed=15.0,
            wind_direction=247.5,
            wind_direction_cardinal="WSW",
            wind_gusts=30.2,
        ),
        hourly=HourlySeries(
            time=hours,
            temperature=[20.0 + (h % 24) / 2 for h in range(72)],
            precipitation_probability=[40.0] * 72,
            precipitation=[0.0] * 72,
            snowfall=[0.1] * 72,
            cloud_cover=[90.0] * 72,
            visibility=[10000.0] * 72,
            wind_speed=[10.0 + (h % 5) for h in range(72)],
            wind_direction=[250.0] * 72,
            wind_gusts=[25.0] * 72,
            uv_index=[1.0] * 72,
        ),
        daily=DailySeries(
            time=days,
            temperature_max=[30.0] * n_days,
            temperature_min=[10.0] * n_days,
            precipitation_sum=[0.1] * n_days,
            snowfall_sum=snow,
            precipitation_probability_max=[50.0] * n_days,
            wind_speed_max=[20.0] * n_days,
            wind_gusts_max=[35.0 + i for i in range(n_days)],
            uv_index_max=[2.0] * n_days,
        ),
        last_updated=FIXED_NOW,
    )


@pytest.fixture
def sample_weather():
    return make_weather()


# --- Model responses ---


MENTOR_PAYLOAD = {
    "briefing": "Danger is Considerable near and above treeline [Official Forecast].",
    "sourceUrl": "https://www.sierraavalanchecenter.org/forecasts#/central-sierra-nevada",
    "sourceCenter": CENTER,
    "disclaimer": "Not a substitute for the official forecast.",
    "problems": [
        {
            "name": "Wind Slab",
            "description": "Drifted snow below ridges.",
            "likelihood": "Likely",
            "size": "Small to Large",
            "officialSource": True,
        }
    ],
    "fieldObservationPrompts": ["Do you see fresh drifts below ridgelines?"],
}


@pytest.fixture
def mentor_payload():
    return json.loads(json.dumps(MENTOR_PAYLOAD))


@pytest.fixture
def mentor_response():
    return "```json\n" + json.dumps(MENTOR_PAYLOAD, indent=2) + "\n```"


@pytest.fixture
def mentor_config():
    return BriefingConfig(name="test", contract=ContractPolicy.MENTOR)


@pytest.fixture
def friendly_config():
    return BriefingConfig(name="test-friendly", contract=ContractPolicy.FRIENDLY)


# --- Collaborator doubles ---


class FakeForecastSource:
    def __init__(self, forecast: ForecastRecord | None = None, error: Exception | None = None):
        self.forecast = forecast
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    def get_forecast(self, center, zone, forecast_date):
        self.calls.append((center, zone, forecast_date))
        if self.error is not None:
            raise self.error
        return self.forecast


class FakeWeatherSource:
    def __init__(self, snapshot: WeatherSnapshot | None = None, error: Exception | None = None):
        self.snapshot = snapshot
        self.error = error
        self.calls: list[tuple[float, float]] = []

    def get_weather(self, lat, lon):
        self.calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return self.snapshot


class FakeOracle:
    def __init__(self, response: str):
        self.response = response
        self.prompts: list[str] = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return self.response


@pytest.fixture
def fakes():
    """Namespace of collaborator double classes."""
    class _Fakes:
        ForecastSource = FakeForecastSource
        WeatherSource = FakeWeatherSource
        Oracle = FakeOracle

    return _Fakes
