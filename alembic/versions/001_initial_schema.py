"""Initial schema: avalanche_briefings, avalanche_forecasts, weather_data.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "avalanche_briefings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("center", sa.String(128), nullable=False),
        sa.Column("zone", sa.String(256), nullable=False),
        sa.Column("forecast_date", sa.String(10), nullable=False, index=True),
        sa.Column("danger_level", sa.Integer, nullable=False),
        sa.Column("briefing_text", sa.Text, nullable=False),
        sa.Column("problems_json", sa.Text, nullable=False, server_default="[]"),
        sa.Column("source_url", sa.Text, nullable=True),
        sa.Column("source_center", sa.String(128), nullable=True),
        sa.Column("disclaimer", sa.Text, nullable=True),
        sa.Column(
            "field_observation_prompts_json", sa.Text, nullable=False, server_default="[]"
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("center", "zone", "forecast_date", name="uq_briefing_key"),
    )

    op.create_table(
        "avalanche_forecasts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("center", sa.String(128), nullable=False),
        sa.Column("zone", sa.String(256), nullable=False),
        sa.Column("forecast_date", sa.String(10), nullable=False, index=True),
        sa.Column("danger_overall", sa.Integer, nullable=False),
        sa.Column("payload_json", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("center", "zone", "forecast_date", name="uq_forecast_key"),
    )

    op.create_table(
        "weather_data",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("center", sa.String(128), nullable=False),
        sa.Column("zone", sa.String(256), nullable=False),
        sa.Column("forecast_date", sa.String(10), nullable=False, index=True),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("payload_json", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("center", "zone", "forecast_date", name="uq_weather_key"),
    )


def downgrade() -> None:
    op.drop_table("weather_data")
    op.drop_table("avalanche_forecasts")
    op.drop_table("avalanche_briefings")
