"""Briefing generation graph using LangGraph.

Takes an official forecast and produces a validated BriefingPayload:
weather enrichment (best-effort), staleness, prompt, model call, validation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph
from typing_extensions import TypedDict

from avybrief.digest.prompt_builder import build_briefing_prompt
from avybrief.digest.response import parse_briefing_response
from avybrief.errors import WeatherUnavailable
from avybrief.geometry import zone_centroid
from avybrief.models import (
    BriefingPayload,
    ForecastRecord,
    StalenessAssessment,
    WeatherSnapshot,
)
from avybrief.sources import TextGenerationOracle, WeatherCache, WeatherSource
from avybrief.staleness import assess_staleness

logger = logging.getLogger(__name__)


# --- LangGraph state ---


class BriefingState(TypedDict, total=False):
    forecast: ForecastRecord
    center: str
    zone: str
    today: str
    now: datetime
    weather: WeatherSnapshot | None
    staleness: StalenessAssessment | None
    prompt: str
    raw_response: str
    payload: BriefingPayload


@dataclass
class BriefingGraphDeps:
    """Collaborators the graph nodes close over."""

    weather_source: WeatherSource
    oracle: TextGenerationOracle
    template: str
    require_liability: bool = True
    weather_cache: WeatherCache | None = None


# --- Weather enrichment ---


def fetch_weather(
    deps: BriefingGraphDeps,
    forecast: ForecastRecord,
    center: str,
    zone: str,
    today: str,
    now: datetime,
) -> WeatherSnapshot:
    """Weather for the zone centroid, from the cache when fresh.

    Raises WeatherUnavailable when the zone has no geometry or the
    source fails.
    """
    centroid = zone_centroid(forecast.geometry)
    if centroid is None:
        raise WeatherUnavailable(f"No zone geometry for {zone}, {center}")

    if deps.weather_cache is not None:
        cached = deps.weather_cache.get(center, zone, today, now)
        if cached is not None:
            logger.info("Weather cache hit for %s/%s", center, zone)
            return cached

    lat, lon = centroid
    try:
        snapshot = deps.weather_source.get_weather(lat, lon)
    except Exception as e:
        raise WeatherUnavailable(f"Weather fetch failed for {lat:.4f},{lon:.4f}: {e}") from e

    if deps.weather_cache is not None:
        try:
            deps.weather_cache.put(center, zone, today, snapshot, now)
        except Exception:
            logger.warning("Failed to cache weather for %s/%s", center, zone, exc_info=True)
    return snapshot


# --- Graph builder ---


def build_briefing_graph(deps: BriefingGraphDeps) -> CompiledStateGraph:
    """Build the LangGraph briefing pipeline.

    enrich_weather -> assess_staleness -> compose -> generate -> validate.
    Only weather failures are recovered; anything else propagates out of
    ``invoke`` unchanged.
    """

    def enrich_weather_node(state: BriefingState) -> dict:
        """Fetch weather for the zone (graceful failure)."""
        try:
            weather = fetch_weather(
                deps, state["forecast"], state["center"], state["zone"],
                state["today"], state["now"],
            )
            return {"weather": weather}
        except WeatherUnavailable as e:
            logger.warning("Weather unavailable, continuing without it: %s", e.message)
            return {"weather": None}
        except Exception:
            logger.warning("Weather enrichment failed, continuing without it", exc_info=True)
            return {"weather": None}

    def assess_staleness_node(state: BriefingState) -> dict:
        published = state["forecast"].published_time
        if published is None:
            return {"staleness": None}
        return {"staleness": assess_staleness(published, state["now"])}

    def compose_node(state: BriefingState) -> dict:
        prompt = build_briefing_prompt(
            state["forecast"],
            state.get("weather"),
            state.get("staleness"),
            center=state["center"],
            zone=state["zone"],
            template=deps.template,
            now=state["now"],
        )
        return {"prompt": prompt}

    def generate_node(state: BriefingState) -> dict:
        return {"raw_response": deps.oracle.generate(state["prompt"])}

    def validate_node(state: BriefingState) -> dict:
        payload = parse_briefing_response(
            state["raw_response"], require_liability=deps.require_liability
        )
        return {"payload": payload}

    graph = StateGraph(BriefingState)
    graph.add_node("enrich_weather", enrich_weather_node)
    graph.add_node("assess_staleness", assess_staleness_node)
    graph.add_node("compose", compose_node)
    graph.add_node("generate", generate_node)
    graph.add_node("validate", validate_node)

    graph.add_edge(START, "enrich_weather")
    graph.add_edge("enrich_weather", "assess_staleness")
    graph.add_edge("assess_staleness", "compose")
    graph.add_edge("compose", "generate")
    graph.add_edge("generate", "validate")
    graph.add_edge("validate", END)

    return graph.compile()


def run_briefing_graph(
    deps: BriefingGraphDeps,
    forecast: ForecastRecord,
    center: str,
    zone: str,
    today: str,
    now: datetime,
) -> BriefingState:
    """Run the full briefing pipeline and return final state."""
    graph = build_briefing_graph(deps)
    return graph.invoke({
        "forecast": forecast,
        "center": center,
        "zone": zone,
        "today": today,
        "now": now,
    })
