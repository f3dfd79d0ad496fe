"""Tests for database URL resolution."""

from __future__ import annotations

import pytest

from avybrief.db.engine import database_url


def test_development_uses_sqlite_in_data_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))

    assert database_url() == f"sqlite:///{tmp_path}/data/avybrief.db"
    assert (tmp_path / "data").is_dir()


def test_production_uses_database_url(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/avybrief")

    assert database_url() == "postgresql://u:p@db/avybrief"


def test_production_requires_database_url(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(ValueError, match="DATABASE_URL"):
        database_url()
