"""Data-age evaluation shared by briefing-cache and forecast-publish checks."""

from __future__ import annotations

from datetime import datetime, timezone

from avybrief.constants import STALENESS_THRESHOLD_HOURS
from avybrief.models import StalenessAssessment


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are UTC by convention
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def assess_staleness(
    reference: datetime,
    now: datetime,
    threshold_hours: float = STALENESS_THRESHOLD_HOURS,
) -> StalenessAssessment:
    """Compute elapsed time since ``reference`` and whether it exceeds the threshold.

    Stale means strictly older than ``threshold_hours``: exactly 24h is
    still fresh, 24h and one second is stale.
    """
    elapsed = _as_utc(now) - _as_utc(reference)
    elapsed_seconds = elapsed.total_seconds()
    elapsed_hours = elapsed_seconds / 3600.0
    return StalenessAssessment(
        reference_time=_as_utc(reference),
        elapsed_hours=elapsed_hours,
        elapsed_ms=int(round(elapsed_seconds * 1000)),
        threshold_hours=threshold_hours,
        is_stale=elapsed_hours > threshold_hours,
    )


def staleness_warning(assessment: StalenessAssessment, subject: str) -> str | None:
    """User-facing warning for stale data, or None when fresh."""
    if not assessment.is_stale:
        return None
    hours = int(assessment.elapsed_hours)
    return (
        f"The {subject} is {hours} hours old. Conditions may have changed; "
        "check the avalanche center for an update before heading out."
    )
