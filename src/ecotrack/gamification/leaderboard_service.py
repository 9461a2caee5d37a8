"""Leaderboard projection: per-user denormalized rows rebuilt from user totals."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ecotrack.db.dialect import insert_for
from ecotrack.db.models import LeaderboardEntry, User

logger = logging.getLogger(__name__)


def display_name(user: User) -> str:
    """Explicit name, else the local part of the email, else the user id."""
    if user.name:
        return user.name
    if user.email:
        return user.email.split("@")[0]
    return user.id


async def project_user(
    db: AsyncSession,
    user_id: str,
    now: datetime | None = None,
) -> LeaderboardEntry | None:
    """Upsert the leaderboard row for a user. Returns None if the user does not exist."""
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        return None

    if now is None:
        now = datetime.now(timezone.utc)

    values = {
        "name": display_name(user),
        "points": user.total_points or 0,
        "co2_saved": user.total_co2_saved or 0.0,
        "last_updated": now,
    }
    insert = insert_for(db)
    stmt = insert(LeaderboardEntry).values(user_id=user_id, **values)
    stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=values)
    await db.execute(stmt)
    await db.commit()

    return await db.get(LeaderboardEntry, user_id, populate_existing=True)


async def refresh_leaderboard(
    session_factory: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
) -> tuple[int, int]:
    """Project every known user. Returns (refreshed, failed).

    Each user is projected in its own session, concurrently. A failure for
    one user is logged and does not stop the others.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    async with session_factory() as db:
        result = await db.execute(select(User.id))
        user_ids = list(result.scalars())

    async def _refresh_one(user_id: str) -> bool:
        try:
            async with session_factory() as db:
                await project_user(db, user_id, now)
            return True
        except Exception:
            logger.exception("Leaderboard refresh failed for user %s", user_id)
            return False

    outcomes = await asyncio.gather(*(_refresh_one(uid) for uid in user_ids))
    refreshed = sum(1 for ok in outcomes if ok)
    failed = len(outcomes) - refreshed
    logger.info("Leaderboard updated for all users: %d refreshed, %d failed", refreshed, failed)
    return refreshed, failed


async def get_leaderboard_page(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[LeaderboardEntry], int]:
    """Leaderboard rows ordered by points (ties by CO2 saved, then user id) and total count."""
    total = await db.scalar(select(func.count()).select_from(LeaderboardEntry)) or 0
    result = await db.execute(
        select(LeaderboardEntry)
        .order_by(
            LeaderboardEntry.points.desc(),
            LeaderboardEntry.co2_saved.desc(),
            LeaderboardEntry.user_id,
        )
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars()), total
