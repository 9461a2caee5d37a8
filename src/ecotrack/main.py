"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ecotrack.config import get_settings
from ecotrack.database import close_db, get_session_factory, init_db
from ecotrack.gamification.router import router as gamification_router
from ecotrack.gamification.seed import seed_badges, seed_tips
from ecotrack.health.router import router as health_router
from ecotrack.middleware import setup_middleware
from ecotrack.redis_client import close_redis, init_redis
from ecotrack.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Badge catalog and tips are reference data (idempotent upserts)
    try:
        async with get_session_factory()() as db:
            await seed_badges(db)
            await seed_tips(db)
    except Exception:
        logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EcoTrack API",
        description="Gamification backend for EcoTrack: points, streaks, badges, leaderboard and eco tips",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(gamification_router)

    return app


app = create_app()
