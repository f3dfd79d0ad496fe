"""Tests for the FastAPI API endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from avybrief.api.app import create_app
from avybrief.db.deps import get_db
from avybrief.db.models import Base
from avybrief.digest.llm_config import BriefingConfig, ContractPolicy
from avybrief.models import Briefing
from avybrief.storage.briefings import SqlBriefingStore

from conftest import (
    CENTER,
    FIXED_NOW,
    TODAY,
    ZONE,
    FakeForecastSource,
    FakeOracle,
    FakeWeatherSource,
)


@pytest.fixture
def app_db():
    """In-memory SQLite engine + session factory for the test app."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def test_app(app_db, full_forecast, sample_weather, mentor_response, monkeypatch):
    """App with an isolated DB, fixed clock and fake upstream collaborators."""
    monkeypatch.setenv("ENVIRONMENT", "production")  # skip lifespan init_db

    app = create_app()

    def _override_get_db():
        session = app_db()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.state.briefing_config = BriefingConfig(name="test", contract=ContractPolicy.MENTOR)
    app.state.forecast_source = FakeForecastSource(full_forecast)
    app.state.weather_source = FakeWeatherSource(sample_weather)
    app.state.oracle = FakeOracle(mentor_response)
    app.state.clock = lambda: FIXED_NOW
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app, raise_server_exceptions=False)


def _seed_briefing(app_db, created_at=FIXED_NOW - timedelta(hours=3)):
    session = app_db()
    SqlBriefingStore(session).insert(Briefing(
        center=CENTER,
        zone=ZONE,
        forecast_date=TODAY,
        danger_level=2,
        briefing_text="Stored briefing.",
        created_at=created_at,
    ))
    session.close()


# --- Health ---


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# --- GET /api/briefings ---


class TestGetBriefing:
    def test_absent(self, client, test_app):
        resp = client.get("/api/briefings", params={"center": CENTER, "zone": ZONE})
        assert resp.status_code == 200
        data = resp.json()
        assert data["briefing"] is None
        assert data["cached"] is False
        # Lookup never generates
        assert test_app.state.oracle.prompts == []

    def test_present(self, client, app_db):
        _seed_briefing(app_db)
        resp = client.get("/api/briefings", params={"center": CENTER, "zone": ZONE})
        assert resp.status_code == 200
        data = resp.json()
        assert data["cached"] is True
        assert data["briefing"]["briefing_text"] == "Stored briefing."
        assert data["staleData"] is False
        assert data["dataAge"] == 3 * 3600 * 1000

    def test_blank_zone(self, client):
        resp = client.get("/api/briefings", params={"center": CENTER})
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "invalid_request"


# --- POST /api/briefings/generate ---


class TestGenerate:
    def test_generates_then_caches(self, client, test_app):
        body = {"center": CENTER, "zone": ZONE}

        first = client.post("/api/briefings/generate", json=body)
        assert first.status_code == 200
        data = first.json()
        assert data["cached"] is False
        assert data["staleData"] is False
        assert data["dataAge"] == 2 * 3600 * 1000
        briefing = data["briefing"]
        assert briefing["forecast_date"] == TODAY
        assert briefing["danger_level"] == 3
        assert briefing["disclaimer"]
        assert briefing["problems"][0]["officialSource"] is True

        second = client.post("/api/briefings/generate", json=body)
        assert second.status_code == 200
        assert second.json()["cached"] is True
        assert second.json()["briefing"]["id"] == briefing["id"]
        assert len(test_app.state.oracle.prompts) == 1

    def test_blank_center(self, client):
        resp = client.post("/api/briefings/generate", json={"center": " ", "zone": ZONE})
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "invalid_request"

    def test_forecast_not_found(self, client, test_app):
        test_app.state.forecast_source = FakeForecastSource(None)
        resp = client.post("/api/briefings/generate", json={"center": CENTER, "zone": ZONE})
        assert resp.status_code == 404
        assert resp.json()["detail"]["kind"] == "forecast_unavailable"

    def test_forecast_source_down(self, client, test_app):
        test_app.state.forecast_source = FakeForecastSource(error=requests.ConnectionError("x"))
        resp = client.post("/api/briefings/generate", json={"center": CENTER, "zone": ZONE})
        assert resp.status_code == 404

    def test_malformed_model_output(self, client, test_app, app_db):
        test_app.state.oracle = FakeOracle("not json at all")
        resp = client.post("/api/briefings/generate", json={"center": CENTER, "zone": ZONE})
        assert resp.status_code == 502
        assert resp.json()["detail"]["kind"] == "malformed_ai_response"
        # Nothing persisted
        session = app_db()
        assert SqlBriefingStore(session).get(CENTER, ZONE, TODAY) is None
        session.close()

    def test_weather_failure_still_generates(self, client, test_app):
        test_app.state.weather_source = FakeWeatherSource(error=requests.Timeout("slow"))
        resp = client.post("/api/briefings/generate", json={"center": CENTER, "zone": ZONE})
        assert resp.status_code == 200
        assert "WEATHER DATA" not in test_app.state.oracle.prompts[0]


# --- POST /api/briefings/regenerate ---


class TestRegenerate:
    def test_deletes_then_generates_fresh(self, client, app_db, test_app):
        _seed_briefing(app_db)
        body = {"center": CENTER, "zone": ZONE}

        resp = client.post("/api/briefings/regenerate", json=body)
        assert resp.status_code == 200
        assert resp.json() == {
            "message": "Briefing deleted. Generate a new briefing to get fresh data."
        }

        lookup = client.get("/api/briefings", params=body)
        assert lookup.json()["briefing"] is None

        fresh = client.post("/api/briefings/generate", json=body)
        assert fresh.json()["cached"] is False
        assert len(test_app.state.oracle.prompts) == 1

    def test_nothing_to_delete(self, client):
        resp = client.post("/api/briefings/regenerate", json={"center": CENTER, "zone": ZONE})
        assert resp.status_code == 200

    def test_missing_zone(self, client):
        resp = client.post("/api/briefings/regenerate", json={"center": CENTER})
        assert resp.status_code == 400
