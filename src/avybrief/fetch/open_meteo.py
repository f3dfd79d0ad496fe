"""Open-Meteo API client for point weather (current, hourly, daily)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import requests

from avybrief.constants import weather_description
from avybrief.fetch.variables import (
    DAILY_FIELD_MAP,
    HOURLY_FIELD_MAP,
    OPEN_METEO_URL,
    build_params,
)
from avybrief.geometry import degrees_to_cardinal
from avybrief.models import (
    CurrentConditions,
    DailySeries,
    HourlySeries,
    WeatherLocation,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)


class OpenMeteoClient:
    """Client for fetching weather from the Open-Meteo API."""

    def __init__(self, base_url: str = OPEN_METEO_URL, timeout: int = 30):
        self.base_url = base_url
        self.timeout = timeout
        self.session = requests.Session()

    def get_weather(self, lat: float, lon: float) -> WeatherSnapshot:
        """Fetch 14 days of history and 7 days of forecast for a point.

        Raises ``requests.RequestException`` on transport or HTTP errors.
        """
        logger.info("Fetching Open-Meteo weather for %.4f,%.4f", lat, lon)

        resp = self.session.get(self.base_url, params=build_params(lat, lon), timeout=self.timeout)
        resp.raise_for_status()
        return parse_weather(resp.json())


def _parse_current(data: dict) -> CurrentConditions:
    direction = data.get("wind_direction_10m")
    code = data.get("weather_code")
    return CurrentConditions(
        time=data.get("time", ""),
        temperature=data.get("temperature_2m"),
        feels_like=data.get("apparent_temperature"),
        humidity=data.get("relative_humidity_2m"),
        precipitation=data.get("precipitation"),
        weather_code=code,
        weather_description=weather_description(code),
        cloud_cover=data.get("cloud_cover"),
        pressure=data.get("pressure_msl"),
        wind_speed=data.get("wind_speed_10m"),
        wind_direction=direction,
        wind_direction_cardinal=degrees_to_cardinal(direction) if direction is not None else "",
        wind_gusts=data.get("wind_gusts_10m"),
    )


def _remap(data: dict, field_map: dict[str, str]) -> dict:
    values = {"time": data.get("time", [])}
    for api_name, field_name in field_map.items():
        values[field_name] = data.get(api_name, [])
    return values


def parse_weather(data: dict) -> WeatherSnapshot:
    """Normalise an Open-Meteo JSON response into a WeatherSnapshot."""
    location = WeatherLocation(
        latitude=data["latitude"],
        longitude=data["longitude"],
        elevation=data.get("elevation"),
        utc_offset_seconds=data.get("utc_offset_seconds", 0),
    )
    return WeatherSnapshot(
        location=location,
        current=_parse_current(data.get("current", {})),
        hourly=HourlySeries(**_remap(data.get("hourly", {}), HOURLY_FIELD_MAP)),
        daily=DailySeries(**_remap(data.get("daily", {}), DAILY_FIELD_MAP)),
        last_updated=datetime.now(timezone.utc),
    )
