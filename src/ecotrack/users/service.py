"""User onboarding and read-side stats."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ecotrack.config import get_settings
from ecotrack.db.models import Action, User
from ecotrack.gamification.badge_service import get_badge_by_name, grant_badge
from ecotrack.gamification.events import UserCreatedEvent
from ecotrack.gamification.streak import action_day, utc_today

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def default_name(email: str | None) -> str | None:
    """Local part of the email address."""
    if not email:
        return None
    return email.split("@")[0]


async def get_or_create_user(db: AsyncSession, user_id: str, email: str | None) -> tuple[User, bool]:
    """Return (user, created). An existing record is never reset."""
    user = await db.get(User, user_id)
    if user is not None:
        return user, False

    now = datetime.now(timezone.utc)
    user = User(
        id=user_id,
        email=email,
        name=default_name(email),
        total_points=0,
        total_co2_saved=0.0,
        streak=0,
        last_action_date=None,
        profile_image="",
        created_at=now,
        last_login=now,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent delivery of the same event created it first.
        await db.rollback()
        user = await db.get(User, user_id, populate_existing=True)
        if user is None:
            raise
        return user, False
    return user, True


async def initialize_user(db: AsyncSession, event: UserCreatedEvent) -> User:
    """Create the zeroed stats record and grant the welcome badge.

    The welcome badge is unconditional: no threshold check is made.
    Safe to re-run for the same user.
    """
    user, created = await get_or_create_user(db, event.user_id, event.email)
    if created:
        logger.info("user_initialized", user_id=user.id)

    settings = get_settings()
    badge = await get_badge_by_name(db, settings.welcome_badge_name)
    if badge is None:
        logger.warning("welcome_badge_missing", badge_name=settings.welcome_badge_name)
        return user

    if await grant_badge(db, user.id, badge):
        logger.info("welcome_badge_granted", user_id=user.id, badge_id=badge.id)
    return user


async def get_recent_actions(db: AsyncSession, user_id: str, limit: int) -> list[Action]:
    """Most recent actions for a user, newest first."""
    result = await db.execute(
        select(Action)
        .where(Action.user_id == user_id)
        .order_by(Action.timestamp.desc())
        .limit(limit)
    )
    return list(result.scalars())


def weekly_summary(actions: list[Action], today: Any = None) -> list[dict[str, Any]]:
    """Points and CO2 per day for the 7 days ending today (oldest first)."""
    if today is None:
        today = utc_today()

    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    totals: dict[Any, dict[str, Any]] = {
        d: {"date": d, "points": 0, "co2_saved": 0.0} for d in days
    }
    for action in actions:
        bucket = totals.get(action_day(action.timestamp))
        if bucket is None:
            continue
        bucket["points"] += action.points
        bucket["co2_saved"] += action.co2_saved

    for bucket in totals.values():
        bucket["co2_saved"] = round(bucket["co2_saved"], 2)
    return [totals[d] for d in days]
