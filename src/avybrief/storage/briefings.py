"""Briefing storage: one row per (center, zone, forecast_date)."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from avybrief.db.models import BriefingRow
from avybrief.errors import BriefingConflict, PersistenceError
from avybrief.models import Briefing, BriefingProblem

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Conversion helpers ---


def _briefing_to_row(briefing: Briefing) -> BriefingRow:
    return BriefingRow(
        center=briefing.center,
        zone=briefing.zone,
        forecast_date=briefing.forecast_date,
        danger_level=briefing.danger_level,
        briefing_text=briefing.briefing_text,
        problems_json=json.dumps(
            [p.model_dump(by_alias=True, exclude_none=True) for p in briefing.problems]
        ),
        source_url=briefing.source_url,
        source_center=briefing.source_center,
        disclaimer=briefing.disclaimer,
        field_observation_prompts_json=json.dumps(briefing.field_observation_prompts),
        created_at=briefing.created_at,
    )


def _row_to_briefing(row: BriefingRow) -> Briefing:
    return Briefing(
        id=row.id,
        center=row.center,
        zone=row.zone,
        forecast_date=row.forecast_date,
        danger_level=row.danger_level,
        briefing_text=row.briefing_text,
        problems=[BriefingProblem.model_validate(p) for p in json.loads(row.problems_json)],
        source_url=row.source_url,
        source_center=row.source_center,
        disclaimer=row.disclaimer,
        field_observation_prompts=json.loads(row.field_observation_prompts_json),
        created_at=as_utc(row.created_at),
    )


class SqlBriefingStore:
    """BriefingStore backed by the ``avalanche_briefings`` table.

    Writes commit immediately so a concurrent request for the same key
    sees the row as soon as the insert returns.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, center: str, zone: str, forecast_date: str) -> Briefing | None:
        stmt = select(BriefingRow).where(
            BriefingRow.center == center,
            BriefingRow.zone == zone,
            BriefingRow.forecast_date == forecast_date,
        )
        try:
            row = self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Briefing lookup failed: {e}") from e
        return _row_to_briefing(row) if row is not None else None

    def insert(self, briefing: Briefing) -> Briefing:
        """Insert unless a row for the key exists (unique constraint decides)."""
        row = _briefing_to_row(briefing)
        try:
            self.session.add(row)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise BriefingConflict(
                f"Briefing already exists for {briefing.center}/{briefing.zone}"
                f" on {briefing.forecast_date}"
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Briefing insert failed", exc_info=True)
            raise PersistenceError(f"Failed to save briefing: {e}") from e
        return _row_to_briefing(row)

    def delete(self, center: str, zone: str, forecast_date: str) -> int:
        """Delete the briefing for the key. Returns the number of rows removed."""
        stmt = delete(BriefingRow).where(
            BriefingRow.center == center,
            BriefingRow.zone == zone,
            BriefingRow.forecast_date == forecast_date,
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Failed to delete briefing: {e}") from e
        return result.rowcount or 0
