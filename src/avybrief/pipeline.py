"""Briefing synthesis: cache check, forecast, weather, prompt, model, persistence.

Usage (API and CLI wire the collaborators the same way):
    synthesizer = BriefingSynthesizer(
        forecast_source, weather_source, oracle, store, config=config,
    )
    envelope = synthesizer.get_or_create_briefing("Sierra Avalanche Center", "Central Sierra")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from avybrief.digest.llm_config import BriefingConfig
from avybrief.digest.llm_digest import BriefingGraphDeps, run_briefing_graph
from avybrief.errors import (
    BriefingConflict,
    BriefingError,
    ForecastUnavailable,
    InvalidRequest,
    PersistenceError,
)
from avybrief.models import Briefing, BriefingEnvelope, ForecastRecord, StalenessAssessment
from avybrief.sources import (
    BriefingStore,
    ForecastCache,
    ForecastSource,
    TextGenerationOracle,
    WeatherCache,
    WeatherSource,
)
from avybrief.staleness import assess_staleness, staleness_warning

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyedLocks:
    """Per-key mutual exclusion within one process.

    Entries are reference counted and dropped once no thread holds or
    waits on them.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def _require(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise InvalidRequest(f"Missing required field: {name}")
    return value.strip()


def _envelope(
    briefing: Briefing | None,
    cached: bool,
    staleness: StalenessAssessment | None,
    subject: str,
) -> BriefingEnvelope:
    if staleness is None:
        return BriefingEnvelope(briefing=briefing, cached=cached, stale_data=False)
    return BriefingEnvelope(
        briefing=briefing,
        cached=cached,
        stale_data=staleness.is_stale,
        data_age=staleness.elapsed_ms,
        staleness_warning=staleness_warning(staleness, subject),
    )


class BriefingSynthesizer:
    """Produces at most one briefing per (center, zone, day) and serves it from the store."""

    def __init__(
        self,
        forecast_source: ForecastSource,
        weather_source: WeatherSource,
        oracle: TextGenerationOracle,
        store: BriefingStore,
        *,
        config: BriefingConfig,
        forecast_cache: ForecastCache | None = None,
        weather_cache: WeatherCache | None = None,
        clock: Clock = utcnow,
        locks: KeyedLocks | None = None,
    ):
        self.forecast_source = forecast_source
        self.weather_source = weather_source
        self.oracle = oracle
        self.store = store
        self.config = config
        self.forecast_cache = forecast_cache
        self.weather_cache = weather_cache
        self.clock = clock
        self.locks = locks or KeyedLocks()

    def _today(self, now: datetime) -> str:
        return now.astimezone(timezone.utc).date().isoformat()

    def _cached(self, briefing: Briefing, now: datetime) -> BriefingEnvelope:
        staleness = assess_staleness(briefing.created_at, now)
        return _envelope(briefing, True, staleness, "briefing")

    # --- Operations ---

    def lookup_briefing(self, center: str, zone: str) -> BriefingEnvelope:
        """Return today's briefing if one exists; never generates."""
        center = _require(center, "center")
        zone = _require(zone, "zone")
        now = self.clock()
        existing = self.store.get(center, zone, self._today(now))
        if existing is None:
            return BriefingEnvelope(briefing=None, cached=False)
        return self._cached(existing, now)

    def regenerate_briefing(self, center: str, zone: str) -> str:
        """Delete today's briefing so the next request generates a fresh one."""
        center = _require(center, "center")
        zone = _require(zone, "zone")
        today = self._today(self.clock())
        deleted = self.store.delete(center, zone, today)
        logger.info("Regenerate %s/%s on %s: %d briefing(s) removed", center, zone, today, deleted)
        return "Briefing deleted. Generate a new briefing to get fresh data."

    def get_or_create_briefing(self, center: str, zone: str) -> BriefingEnvelope:
        """Return today's briefing, generating and storing it on a cache miss.

        Raises:
            InvalidRequest: blank center or zone.
            ForecastUnavailable: no forecast is published for the zone.
            MalformedAiResponse / IncompleteAiResponse: unusable model answer.
            PersistenceError: the store failed.
        """
        center = _require(center, "center")
        zone = _require(zone, "zone")
        now = self.clock()
        today = self._today(now)

        existing = self.store.get(center, zone, today)
        if existing is not None:
            return self._cached(existing, now)

        with self.locks.hold((center, zone, today)):
            # Another request may have finished while we waited
            existing = self.store.get(center, zone, today)
            if existing is not None:
                return self._cached(existing, now)
            return self._generate(center, zone, today, now)

    # --- Generation ---

    def _generate(self, center: str, zone: str, today: str, now: datetime) -> BriefingEnvelope:
        forecast = self._acquire_forecast(center, zone, today)

        deps = BriefingGraphDeps(
            weather_source=self.weather_source,
            oracle=self.oracle,
            template=self.config.load_contract_template(),
            require_liability=self.config.requires_liability_fields,
            weather_cache=self.weather_cache,
        )
        state = run_briefing_graph(deps, forecast, center, zone, today, now)
        payload = state["payload"]

        briefing = Briefing(
            center=center,
            zone=zone,
            forecast_date=today,
            danger_level=forecast.danger_overall,
            briefing_text=payload.briefing,
            problems=payload.problems,
            source_url=payload.source_url,
            source_center=payload.source_center,
            disclaimer=payload.disclaimer,
            field_observation_prompts=payload.field_observation_prompts,
            created_at=now,
        )

        try:
            saved = self.store.insert(briefing)
        except BriefingConflict:
            logger.info("Lost briefing insert race for %s/%s, returning winner", center, zone)
            winner = self.store.get(center, zone, today)
            if winner is None:
                raise PersistenceError(
                    f"Briefing for {center}/{zone} conflicted but could not be read back"
                )
            return self._cached(winner, now)

        logger.info("Briefing created for %s/%s on %s", center, zone, today)
        return _envelope(saved, False, state.get("staleness"), "official forecast")

    def _acquire_forecast(self, center: str, zone: str, today: str) -> ForecastRecord:
        if self.forecast_cache is not None:
            try:
                cached = self.forecast_cache.get(center, zone, today)
            except Exception:
                logger.warning("Forecast cache read failed", exc_info=True)
                cached = None
            if cached is not None:
                return cached

        try:
            forecast = self.forecast_source.get_forecast(center, zone, today)
        except BriefingError:
            raise
        except Exception as e:
            logger.warning("Forecast fetch failed for %s/%s", center, zone, exc_info=True)
            raise ForecastUnavailable(f"Could not fetch forecast for {zone}, {center}") from e

        if forecast is None:
            raise ForecastUnavailable(f"Forecast not found for {zone}, {center}")

        if self.forecast_cache is not None:
            try:
                self.forecast_cache.put(forecast)
            except Exception:
                logger.warning("Failed to cache forecast for %s/%s", center, zone, exc_info=True)
        return forecast
