"""Badge evaluation with duplicate prevention and a single batched notification."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.db.models import Badge, Notification, User, UserBadge

logger = logging.getLogger(__name__)

MAX_GRANT_ATTEMPTS = 3


async def get_badge_by_name(db: AsyncSession, name: str) -> Badge | None:
    """Fetch a catalog badge by name."""
    result = await db.execute(select(Badge).where(Badge.name == name).limit(1))
    return result.scalar_one_or_none()


async def has_badge(db: AsyncSession, user_id: str, badge_id: int) -> bool:
    """Check if user already has a specific badge."""
    result = await db.execute(
        select(UserBadge.id).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def held_badge_ids(db: AsyncSession, user_id: str) -> set[int]:
    """Badge ids already granted to the user."""
    result = await db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
    return set(result.scalars())


def badge_qualifies(badge: Badge, points: int, streak: int) -> bool:
    """Either configured threshold is sufficient on its own."""
    if badge.points_required is not None and points >= badge.points_required:
        return True
    if badge.streak_required is not None and streak >= badge.streak_required:
        return True
    return False


def badge_message(names: list[str]) -> str:
    return f"You earned new badges: {', '.join(names)}"


async def grant_badge(db: AsyncSession, user_id: str, badge: Badge) -> bool:
    """Grant a single badge without an eligibility check.

    Returns True if granted, False if the user already has it. Commits.
    """
    if await has_badge(db, user_id, badge.id):
        return False

    db.add(UserBadge(user_id=user_id, badge_id=badge.id, earned_at=datetime.now(timezone.utc)))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False  # Race condition: badge already granted
    return True


async def evaluate_badges(db: AsyncSession, redis: object, user_id: str) -> list[str]:
    """Grant every catalog badge the user now qualifies for.

    All grants and their notification are committed in one transaction.
    A concurrent evaluation that wins the UNIQUE(user_id, badge_id) race
    makes the whole batch roll back; the evaluation is then repeated from
    the freshly committed state.

    Returns the names of the badges granted (may be empty).
    """
    for attempt in range(1, MAX_GRANT_ATTEMPTS + 1):
        user = await db.get(User, user_id, populate_existing=True)
        if user is None:
            return []

        result = await db.execute(select(Badge).order_by(Badge.sort_order, Badge.id))
        catalog = list(result.scalars())
        if not catalog:
            return []

        held = await held_badge_ids(db, user_id)
        points = user.total_points or 0
        streak = user.streak or 0
        earned = [b for b in catalog if b.id not in held and badge_qualifies(b, points, streak)]
        if not earned:
            return []

        now = datetime.now(timezone.utc)
        for badge in earned:
            db.add(UserBadge(user_id=user_id, badge_id=badge.id, earned_at=now))

        names = [b.name for b in earned]
        notification = Notification(
            user_id=user_id,
            type="badge",
            message=badge_message(names),
            read=False,
            created_at=now,
        )
        db.add(notification)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info(
                "Badge grant for %s lost a race (attempt %d), re-evaluating",
                user_id, attempt,
            )
            continue

        logger.info("Granted badges to %s: %s", user_id, names)
        await _push_notification(redis, notification, names)
        return names

    msg = f"Could not grant badges to {user_id} after {MAX_GRANT_ATTEMPTS} attempts"
    raise RuntimeError(msg)


async def _push_notification(redis: object, notification: Notification, names: list[str]) -> None:
    """Publish the committed notification to ws:user:{user_id}. Best-effort."""
    if redis is None:
        return

    payload = {
        "event": "notification",
        "data": {
            "id": str(notification.id),
            "type": notification.type,
            "message": notification.message,
            "badges": names,
            "read": False,
            "timestamp": notification.created_at.isoformat(),
        },
    }
    try:
        await redis.publish(  # type: ignore[union-attr]
            f"ws:user:{notification.user_id}",
            json.dumps(payload),
        )
    except Exception:
        logger.warning("Failed to push badge notification to %s", notification.user_id, exc_info=True)
