"""FastAPI app factory."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from avybrief import __version__
from avybrief.api.briefings import router as briefings_router
from avybrief.api.chat import router as chat_router
from avybrief.db.engine import get_engine, init_db
from avybrief.digest.llm_config import ChatModelOracle, load_briefing_config
from avybrief.fetch.avalanche_org import AvalancheOrgClient
from avybrief.fetch.open_meteo import OpenMeteoClient
from avybrief.pipeline import KeyedLocks, utcnow

logger = logging.getLogger(__name__)


def is_dev_mode() -> bool:
    return os.environ.get("ENVIRONMENT", "development") == "development"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    engine = get_engine()

    if is_dev_mode():
        init_db(engine)
        logger.info("Dev mode: tables created via init_db")

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    load_dotenv()

    app = FastAPI(
        title="Avybrief API",
        description="Avalanche forecast briefing API",
        version=__version__,
        lifespan=lifespan,
    )

    config = load_briefing_config()
    app.state.briefing_config = config
    app.state.forecast_source = AvalancheOrgClient()
    app.state.weather_source = OpenMeteoClient()
    app.state.oracle = ChatModelOracle(config)
    app.state.briefing_locks = KeyedLocks()
    app.state.clock = utcnow
    logger.info("Briefing config %r (contract=%s)", config.name, config.contract.value)

    if is_dev_mode():
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(briefings_router, prefix="/api")
    app.include_router(chat_router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
