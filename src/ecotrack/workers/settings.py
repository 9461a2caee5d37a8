"""arq worker settings for scheduled jobs.

Import path for arq CLI: arq ecotrack.workers.settings.WorkerSettings
"""

from __future__ import annotations

import logging
from datetime import timezone as tz

from arq import cron
from arq.connections import RedisSettings

from ecotrack.config import get_settings
from ecotrack.database import close_db, get_session_factory, init_db
from ecotrack.gamification.leaderboard_service import refresh_leaderboard
from ecotrack.middleware.logging import setup_logging

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB connections on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)
    ctx["session_factory"] = get_session_factory()
    logger.info("Scheduler worker started")


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_db()
    logger.info("Scheduler worker shut down")


async def daily_leaderboard_refresh(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Scheduled task: re-project every user's leaderboard row (00:00 UTC)."""
    refreshed, failed = await refresh_leaderboard(ctx["session_factory"])
    return {"refreshed": refreshed, "failed": failed}


class WorkerSettings:
    """arq worker settings for the daily leaderboard scheduler."""

    functions = [daily_leaderboard_refresh]
    cron_jobs = [
        cron(daily_leaderboard_refresh, hour={0}, minute={0}, second={0}),
    ]
    on_startup = startup
    on_shutdown = shutdown
    max_jobs = 4
    job_timeout = 600
    timezone = tz.utc
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
