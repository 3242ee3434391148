"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pelada.api.evolution import router as evolution_router
from pelada.api.games import router as games_router
from pelada.api.matches import router as matches_router
from pelada.api.players import router as players_router
from pelada.api.presets import router as presets_router
from pelada.api.rankings import router as rankings_router
from pelada.config import Settings
from pelada.db.engine import create_engine, create_tables

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: create the engine and any missing tables."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    app.state.engine = engine
    logger.info("pelada_started env=%s", settings.pelada_env)

    yield

    await engine.dispose()
    logger.info("pelada_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the pelada FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.pelada_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Pelada Manager",
        version="0.1.0",
        description="Balanced drafts, fixtures, live matches and rating evolution for pickup soccer",
        docs_url="/docs" if settings.pelada_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(players_router)
    app.include_router(matches_router)
    app.include_router(games_router)
    app.include_router(evolution_router)
    app.include_router(rankings_router)
    app.include_router(presets_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.pelada_env}

    return app


app = create_app()
