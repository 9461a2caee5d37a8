"""Applies a newly created action to the owner's running totals."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.config import get_settings
from ecotrack.db.models import Action, User
from ecotrack.gamification.badge_service import evaluate_badges
from ecotrack.gamification.events import ActionCreatedEvent
from ecotrack.gamification.leaderboard_service import project_user
from ecotrack.gamification.streak import calculate_streak, utc_today

logger = logging.getLogger(__name__)


async def recent_action_timestamps(db: AsyncSession, user_id: str, limit: int) -> list[datetime]:
    """Timestamps of the user's most recent actions, newest first."""
    result = await db.execute(
        select(Action.timestamp)
        .where(Action.user_id == user_id)
        .order_by(Action.timestamp.desc())
        .limit(limit)
    )
    return list(result.scalars())


async def apply_action(
    db: AsyncSession,
    redis: object,
    event: ActionCreatedEvent,
    today: date | None = None,
) -> User | None:
    """Update totals, streak and last-action date, then refresh leaderboard and badges.

    Counters are incremented in SQL so concurrent actions never lose updates.
    The action is marked applied in the same transaction; a redelivered event
    skips the increment but still recomputes the derived fields.

    The stored Action row is authoritative for owner, points and CO2; an
    event that names a different owner is skipped.

    Returns the updated user, or None if the user (or the action) is unknown.
    """
    action = await db.get(Action, event.action_id)
    if action is None:
        logger.warning("Action %s not found in store, skipping", event.action_id)
        return None
    if action.user_id != event.user_id:
        logger.warning(
            "Action %s belongs to %s, event names %s, skipping",
            event.action_id, action.user_id, event.user_id,
        )
        return None

    user_id = action.user_id
    if await db.get(User, user_id) is None:
        logger.info("Action %s for unknown user %s, skipping", event.action_id, user_id)
        return None

    settings = get_settings()
    timestamps = await recent_action_timestamps(db, user_id, settings.streak_history_limit)
    streak = calculate_streak(timestamps, today or utc_today())

    now = datetime.now(timezone.utc)
    marked = await db.execute(
        update(Action)
        .where(Action.id == action.id, Action.applied_at.is_(None))
        .values(applied_at=now)
    )

    values: dict[str, object] = {"streak": streak, "last_action_date": action.timestamp}
    if marked.rowcount:
        values["total_points"] = User.total_points + action.points
        values["total_co2_saved"] = User.total_co2_saved + action.co2_saved
    else:
        logger.info("Action %s already applied, recomputing derived fields only", event.action_id)

    await db.execute(update(User).where(User.id == user_id).values(**values))
    await db.commit()

    await project_user(db, user_id)
    await evaluate_badges(db, redis, user_id)

    return await db.get(User, user_id, populate_existing=True)
