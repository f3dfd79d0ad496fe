"""Pydantic v2 models for avybrief.

Re-exports from submodules so ``from avybrief.models import X`` keeps working.
"""

from avybrief.models.briefing import (  # noqa: F401
    Briefing,
    BriefingEnvelope,
    BriefingPayload,
    BriefingProblem,
    StalenessAssessment,
)
from avybrief.models.forecast import (  # noqa: F401
    AvalancheProblem,
    ForecastRecord,
    MediaItem,
    MediaUrls,
    ZoneGeometry,
)
from avybrief.models.weather import (  # noqa: F401
    CurrentConditions,
    DailySeries,
    HourlySeries,
    WeatherLocation,
    WeatherSnapshot,
)
