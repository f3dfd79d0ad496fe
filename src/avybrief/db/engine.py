"""Engine and session factory for the briefing database."""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from avybrief.db.models import Base

logger = logging.getLogger(__name__)

DB_FILENAME = "avybrief.db"

_engine: Engine | None = None
SessionLocal: sessionmaker[Session] = sessionmaker()


def database_url() -> str:
    """Resolve the database URL from the environment.

    Production requires ``DATABASE_URL``. Anywhere else the briefings live
    in a SQLite file under ``DATA_DIR`` (default ``data/``).
    """
    if os.environ.get("ENVIRONMENT", "development") == "production":
        url = os.environ.get("DATABASE_URL")
        if not url:
            raise ValueError("DATABASE_URL must be set when ENVIRONMENT=production")
        return url

    data_dir = os.environ.get("DATA_DIR", "data")
    os.makedirs(data_dir, exist_ok=True)
    return f"sqlite:///{data_dir}/{DB_FILENAME}"


def _enable_wal(engine: Engine) -> None:
    # Readers keep going while a briefing insert holds the write lock
    @event.listens_for(engine, "connect")
    def _journal_mode(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def get_engine(db_url: str | None = None) -> Engine:
    """Process-wide engine, created on first call and bound to ``SessionLocal``."""
    global _engine
    if _engine is not None:
        return _engine

    url = db_url or database_url()
    is_sqlite = url.startswith("sqlite")
    # Request handlers run in a threadpool and share the file
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}

    _engine = create_engine(url, connect_args=connect_args)
    if is_sqlite:
        _enable_wal(_engine)
    SessionLocal.configure(bind=_engine)

    logger.info("Briefing database: %s", url.rsplit("@", 1)[-1])
    return _engine


def init_db(engine: Engine | None = None) -> None:
    """Create the briefing and cache tables (development; Alembic owns production)."""
    Base.metadata.create_all(engine or get_engine())
    logger.info("Briefing tables ready")
