"""Assemble the briefing prompt from forecast, weather and staleness data.

The contract text (persona, output format, authoring rules) comes from the
active policy's markdown template; this module renders the data blocks that
go into its ``{{CONTEXT}}`` slot.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone

from avybrief.constants import (
    DANGER_LEVELS,
    ELEVATION_BANDS,
    HISTORY_DAYS,
    HISTORY_DETAIL_DAYS,
    NEXT_HOURS,
    NO_DATA_LABEL,
    SNOW_DAY_THRESHOLD_IN,
)
from avybrief.models import ForecastRecord, StalenessAssessment, WeatherSnapshot

CONTEXT_PLACEHOLDER = "{{CONTEXT}}"
SOURCE_URL_PLACEHOLDER = "{{SOURCE_URL}}"
CENTER_PLACEHOLDER = "{{CENTER}}"

# --- Markup stripping ---

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&lsquo;": "'",
    "&rsquo;": "'",
    "&ldquo;": '"',
    "&rdquo;": '"',
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES))


def strip_markup(text: str | None) -> str:
    """Strip HTML tags and a fixed set of entities, collapse whitespace.

    Tags become a single space. Tag removal and entity decoding repeat
    until the text stops changing, so the result contains neither and
    ``strip_markup(strip_markup(s)) == strip_markup(s)``.

    Encoded angle brackets decode into tag-like text that the next pass
    removes, so "below &lt;7000 ft, slopes &gt;35" keeps only "below 35".
    """
    if not text:
        return ""
    previous = None
    while previous != text:
        previous = text
        text = _TAG_RE.sub(" ", text)
        text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)
    return _WS_RE.sub(" ", text).strip()


# --- Danger labels ---


def danger_label(level: int | None) -> str:
    """Name for a danger rating. None (not assessed) is "No Data", -1 is "No Rating"."""
    if level is None:
        return NO_DATA_LABEL
    return DANGER_LEVELS.get(level, "Unknown")


def danger_text(level: int | None) -> str:
    """Danger label with the numeric rating, e.g. "Considerable (3/5)"."""
    label = danger_label(level)
    if level is None or level < 1:
        return label
    return f"{label} ({level}/5)"


# --- Number formatting (round half up, like the forecast products do) ---


def _round(value: float | None) -> str:
    if value is None:
        return "N/A"
    return str(int(math.floor(value + 0.5)))


def _fixed(value: float | None, digits: int = 1) -> str:
    if value is None:
        return "N/A"
    return f"{value:.{digits}f}"


def _num(value: float | None) -> float:
    return 0.0 if value is None else float(value)


def _present(values: list[float | None]) -> list[float]:
    return [float(v) for v in values if v is not None]


# --- Series lookup ---


def find_today_index(times: list[str], today: str) -> int:
    """Index of the entry whose calendar date equals ``today`` (exact match), or -1."""
    for i, t in enumerate(times):
        if t[:10] == today:
            return i
    return -1


def _series_time(value: str, utc_offset_seconds: int) -> datetime:
    """Parse an Open-Meteo timestamp; naive values are local at the given offset."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone(timedelta(seconds=utc_offset_seconds)))
    return parsed


def find_current_hour_index(times: list[str], now: datetime, utc_offset_seconds: int = 0) -> int:
    """Index of the first hourly timestamp at or after ``now``, or -1."""
    for i, t in enumerate(times):
        if _series_time(t, utc_offset_seconds) >= now:
            return i
    return -1


def _day_label(value: str) -> str:
    d = date.fromisoformat(value[:10])
    return f"{d:%a}, {d:%b} {d.day}"


def _all_parse(values: list[str], parse) -> bool:
    """True when ``parse`` accepts every value. An unparseable timestamp marks the series malformed."""
    try:
        for value in values:
            parse(value)
    except (TypeError, ValueError):
        return False
    return True


# --- Blocks ---


def build_facts_block(forecast: ForecastRecord, center: str, zone: str) -> str:
    lines = [
        f"**Location:** {zone}, {center}",
        f"**Forecast Date:** {forecast.forecast_date}",
        f"**Overall Danger Level:** {danger_text(forecast.danger_overall)}",
        "**Danger by Elevation:**",
        f"- {ELEVATION_BANDS['high']}: {danger_text(forecast.danger_high)}",
        f"- {ELEVATION_BANDS['middle']}: {danger_text(forecast.danger_middle)}",
        f"- {ELEVATION_BANDS['low']}: {danger_text(forecast.danger_low)}",
        f"**Official Travel Advice:** {forecast.travel_advice or 'No specific advice provided'}",
    ]
    if forecast.forecast_url:
        lines.append(f"**Official Forecast URL:** {forecast.forecast_url}")
    return "\n".join(lines)


def build_staleness_block(staleness: StalenessAssessment) -> str:
    published = staleness.reference_time.isoformat()
    return (
        "--- DATA FRESHNESS WARNING ---\n"
        f"The official forecast was published {staleness.elapsed_hours:.0f} hours ago "
        f"({published}), which is older than {staleness.threshold_hours:.0f} hours.\n"
        "State clearly near the top of the briefing that the official forecast may be "
        "out of date and that conditions may have changed since it was issued."
    )


def build_history_block(weather: WeatherSnapshot, today_index: int) -> str | None:
    """Past-14-day summary, or None when there is no history before today."""
    daily = weather.daily
    if today_index <= 0 or not daily.is_aligned():
        return None

    start = max(0, today_index - HISTORY_DAYS)
    days = daily.time[start:today_index]
    if not _all_parse(days, _day_label):
        return None
    snow = [_num(v) for v in daily.snowfall_sum[start:today_index]]
    highs = daily.temperature_max[start:today_index]
    gusts = daily.wind_gusts_max[start:today_index]

    present_highs = _present(highs)
    present_gusts = _present(gusts)
    total_snow = sum(snow)
    avg_high = sum(present_highs) / len(present_highs) if present_highs else None
    max_gust = max(present_gusts) if present_gusts else None
    snow_days = sum(1 for s in snow if s > SNOW_DAY_THRESHOLD_IN)

    lines = [
        f"**Past {HISTORY_DAYS} Days (Recent Weather History):**",
        f'- Total snowfall: {total_snow:.1f}"',
        f"- Average high temperature: {_round(avg_high)}°F",
        f"- Max wind gusts: {_round(max_gust)} mph",
        f'- Snow days: {snow_days} days with >{SNOW_DAY_THRESHOLD_IN}" snow',
        "",
        "**Day-by-day recent history:**",
    ]
    detail = min(HISTORY_DETAIL_DAYS, len(days))
    for i in range(len(days) - detail, len(days)):
        days_ago = len(days) - i
        lines.append(
            f"- {_day_label(days[i])} ({days_ago}d ago): {snow[i]:.1f}\" snow, "
            f"High {_round(highs[i])}°F, Wind gusts {_round(gusts[i])} mph"
        )
    return "\n".join(lines)


def build_current_block(weather: WeatherSnapshot) -> str:
    cur = weather.current
    precip = (
        f'{cur.precipitation:.2f}"'
        if cur.precipitation is not None and cur.precipitation > 0
        else "None"
    )
    wind_dir = f" {cur.wind_direction_cardinal}" if cur.wind_direction_cardinal else ""
    return "\n".join([
        "**Current Conditions:**",
        f"- Temperature: {_round(cur.temperature)}°F (Feels like {_round(cur.feels_like)}°F)",
        f"- Weather: {cur.weather_description}",
        f"- Wind: {_round(cur.wind_speed)} mph{wind_dir} (gusts {_round(cur.wind_gusts)} mph)",
        f"- Humidity: {_round(cur.humidity)}%",
        f"- Cloud Cover: {_round(cur.cloud_cover)}%",
        f"- Current Precipitation: {precip}",
        f"- Barometric Pressure: {_round(cur.pressure)} mb",
    ])


def build_today_block(weather: WeatherSnapshot, today_index: int) -> str | None:
    daily = weather.daily
    if today_index < 0 or not daily.is_aligned():
        return None
    i = today_index
    return "\n".join([
        "**Today's Forecast:**",
        f"- High/Low: {_round(daily.temperature_max[i])}°F / {_round(daily.temperature_min[i])}°F",
        f'- Precipitation: {_fixed(daily.precipitation_sum[i], 2)}" '
        f"({_round(daily.precipitation_probability_max[i])}% chance)",
        f'- Snowfall: {_fixed(daily.snowfall_sum[i])}"',
        f"- Max Wind: {_round(daily.wind_speed_max[i])} mph "
        f"(gusts {_round(daily.wind_gusts_max[i])} mph)",
        f"- UV Index: {_fixed(daily.uv_index_max[i])}",
    ])


def build_next_hours_block(weather: WeatherSnapshot, now: datetime) -> str | None:
    hourly = weather.hourly
    if not hourly.is_aligned() or not _all_parse(hourly.time, datetime.fromisoformat):
        return None
    idx = find_current_hour_index(hourly.time, now, weather.location.utc_offset_seconds)
    if idx < 0:
        return None

    window = slice(idx, idx + NEXT_HOURS)
    temps = _present(hourly.temperature[window])
    snow = [_num(v) for v in hourly.snowfall[window]]
    winds = _present(hourly.wind_speed[window])
    precip_prob = _present(hourly.precipitation_probability[window])

    return "\n".join([
        f"**Next {NEXT_HOURS} Hours Trends:**",
        f"- Temperature range: {_round(min(temps) if temps else None)}°F - "
        f"{_round(max(temps) if temps else None)}°F",
        f'- Expected snow: {sum(snow):.1f}"',
        f"- Max wind speed: {_round(max(winds) if winds else None)} mph",
        f"- Precipitation probability: {_round(max(precip_prob) if precip_prob else None)}%",
    ])


def build_weather_block(weather: WeatherSnapshot, now: datetime) -> str:
    today = now.astimezone(timezone.utc).date().isoformat()
    today_index = find_today_index(weather.daily.time, today)

    parts = ["--- WEATHER DATA ---"]
    for block in (
        build_history_block(weather, today_index),
        build_current_block(weather),
        build_today_block(weather, today_index),
        build_next_hours_block(weather, now),
    ):
        if block:
            parts.append(block)
    return "\n\n".join(parts)


def build_official_block(forecast: ForecastRecord) -> str:
    lines = ["--- OFFICIAL FORECAST DATA ---"]

    if forecast.bottom_line:
        lines.append(f"\n**Bottom Line (from forecasters):**\n{strip_markup(forecast.bottom_line)}")
    if forecast.hazard_discussion:
        lines.append(f"\n**Hazard Discussion:**\n{strip_markup(forecast.hazard_discussion)}")
    if forecast.weather_discussion:
        lines.append(f"\n**Weather Discussion:**\n{strip_markup(forecast.weather_discussion)}")

    if forecast.avalanche_problems:
        lines.append("\n**Official Avalanche Problems:**")
        for n, problem in enumerate(forecast.avalanche_problems, start=1):
            lines.append(f"\n{n}. {problem.name or 'Unknown Problem'}")
            lines.append(f"   Likelihood: {problem.likelihood or 'Not specified'}")
            lines.append(
                f"   Size: {problem.min_size or 'Small'} to {problem.max_size or 'Large'}"
            )
            if problem.discussion:
                lines.append(f"   Discussion: {strip_markup(problem.discussion)}")
            if problem.location:
                lines.append(f"   Affected Areas: {', '.join(problem.location)}")

    if forecast.media:
        lines.append(
            f"\n**Field Photos Available:** {len(forecast.media)} photos with observations"
        )
        for n, photo in enumerate(forecast.media, start=1):
            if photo.caption:
                lines.append(f"  Photo {n}: {strip_markup(photo.caption)}")

    return "\n".join(lines)


def build_briefing_context(
    forecast: ForecastRecord,
    weather: WeatherSnapshot | None,
    staleness: StalenessAssessment | None,
    center: str,
    zone: str,
    now: datetime,
) -> str:
    """Build the data portion of the prompt.

    Sections:
    1. Facts (location, danger ratings, travel advice)
    2. Staleness warning (only when the forecast is stale)
    3. Weather (only when a snapshot is available)
    4. Official product (only when enrichment succeeded)
    """
    sections = [build_facts_block(forecast, center, zone)]
    if staleness is not None and staleness.is_stale:
        sections.append(build_staleness_block(staleness))
    if weather is not None:
        sections.append(build_weather_block(weather, now))
    if forecast.has_product_data:
        sections.append(build_official_block(forecast))
    return "\n\n".join(sections)


def build_briefing_prompt(
    forecast: ForecastRecord,
    weather: WeatherSnapshot | None,
    staleness: StalenessAssessment | None,
    *,
    center: str,
    zone: str,
    template: str,
    now: datetime,
) -> str:
    """Render the full prompt: the contract template with the data blocks inserted."""
    context = build_briefing_context(forecast, weather, staleness, center, zone, now)
    return (
        template
        .replace(SOURCE_URL_PLACEHOLDER, forecast.forecast_url or "")
        .replace(CENTER_PLACEHOLDER, center)
        .replace(CONTEXT_PLACEHOLDER, context)
    )
