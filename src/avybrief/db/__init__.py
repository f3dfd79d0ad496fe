"""Database package: SQLAlchemy models, engine, and FastAPI dependencies."""

from avybrief.db.engine import SessionLocal, get_engine, init_db
from avybrief.db.models import Base

__all__ = ["Base", "SessionLocal", "get_engine", "init_db"]
