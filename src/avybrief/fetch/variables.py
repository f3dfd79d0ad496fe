"""Variable lists and request parameters for the Open-Meteo forecast API."""

from __future__ import annotations

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

CURRENT_VARIABLES = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "weather_code",
    "cloud_cover",
    "pressure_msl",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
]

HOURLY_VARIABLES = [
    "temperature_2m",
    "precipitation_probability",
    "precipitation",
    "snowfall",
    "cloud_cover",
    "visibility",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
    "uv_index",
]

DAILY_VARIABLES = [
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "snowfall_sum",
    "precipitation_probability_max",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
    "uv_index_max",
]

# API variable name -> HourlySeries field
HOURLY_FIELD_MAP = {
    "temperature_2m": "temperature",
    "precipitation_probability": "precipitation_probability",
    "precipitation": "precipitation",
    "snowfall": "snowfall",
    "cloud_cover": "cloud_cover",
    "visibility": "visibility",
    "wind_speed_10m": "wind_speed",
    "wind_direction_10m": "wind_direction",
    "wind_gusts_10m": "wind_gusts",
    "uv_index": "uv_index",
}

# API variable name -> DailySeries field
DAILY_FIELD_MAP = {
    "temperature_2m_max": "temperature_max",
    "temperature_2m_min": "temperature_min",
    "precipitation_sum": "precipitation_sum",
    "snowfall_sum": "snowfall_sum",
    "precipitation_probability_max": "precipitation_probability_max",
    "wind_speed_10m_max": "wind_speed_max",
    "wind_gusts_10m_max": "wind_gusts_max",
    "uv_index_max": "uv_index_max",
}

PAST_DAYS = 14
FORECAST_DAYS = 7


def build_params(lat: float, lon: float) -> dict[str, str | float | int]:
    """Query parameters for one coordinate (imperial units, local timezone)."""
    return {
        "latitude": lat,
        "longitude": lon,
        "current": ",".join(CURRENT_VARIABLES),
        "hourly": ",".join(HOURLY_VARIABLES),
        "daily": ",".join(DAILY_VARIABLES),
        "temperature_unit": "fahrenheit",
        "wind_speed_unit": "mph",
        "precipitation_unit": "inch",
        "timezone": "auto",
        "past_days": PAST_DAYS,
        "forecast_days": FORECAST_DAYS,
    }
