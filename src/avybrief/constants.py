"""Shared constants: danger scale, cache windows, WMO weather codes."""

from __future__ import annotations

from datetime import timedelta

# North American avalanche danger scale (-1 = no rating issued)
DANGER_LEVELS: dict[int, str] = {
    -1: "No Rating",
    1: "Low",
    2: "Moderate",
    3: "Considerable",
    4: "High",
    5: "Extreme",
}

NO_DATA_LABEL = "No Data"

ELEVATION_BANDS = {
    "high": "Above Treeline",
    "middle": "Near Treeline",
    "low": "Below Treeline",
}

# Weather snapshots older than this are refetched
WEATHER_CACHE_WINDOW = timedelta(hours=6)

STALENESS_THRESHOLD_HOURS = 24.0

# Snow days in the history block: days with more than this many inches
SNOW_DAY_THRESHOLD_IN = 0.5

HISTORY_DAYS = 14
HISTORY_DETAIL_DAYS = 7
NEXT_HOURS = 24

# WMO weather interpretation codes
WEATHER_CODE_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def weather_description(code: int | None) -> str:
    """Human-readable description for a WMO weather code."""
    if code is None:
        return "Unknown"
    return WEATHER_CODE_DESCRIPTIONS.get(int(code), "Unknown")
