"""Caller's own stats: /api/v1/users/me/*."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.auth.dependencies import get_caller_id
from ecotrack.config import get_settings
from ecotrack.database import get_session
from ecotrack.db.models import Action, Badge, User, UserBadge
from ecotrack.gamification.streak import utc_today
from ecotrack.users.schemas import (
    ActionResponse,
    DailySummary,
    EarnedBadgeResponse,
    RecentActionsResponse,
    UserBadgesResponse,
    UserStatsResponse,
)
from ecotrack.users.service import get_recent_actions, weekly_summary

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me/stats", response_model=UserStatsResponse)
async def my_stats(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_session),
):
    """Running totals for the caller."""
    user = await db.get(User, caller_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserStatsResponse.model_validate(user)


@router.get("/me/badges", response_model=UserBadgesResponse)
async def my_badges(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_session),
):
    """Badges earned by the caller, oldest first."""
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == caller_id)
        .order_by(UserBadge.earned_at, UserBadge.id)
    )
    earned = [
        EarnedBadgeResponse(
            badge_id=ub.badge_id,
            name=ub.badge.name,
            description=ub.badge.description,
            earned_at=ub.earned_at,
        )
        for ub in result.unique().scalars()
    ]
    total_available = await db.scalar(select(func.count()).select_from(Badge)) or 0
    return UserBadgesResponse(
        earned=earned,
        total_available=total_available,
        total_earned=len(earned),
    )


@router.get("/me/actions", response_model=RecentActionsResponse)
async def my_actions(
    limit: int | None = Query(None, ge=1, le=100),
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_session),
):
    """Recent actions plus a points/CO2 summary for the last 7 days."""
    if limit is None:
        limit = get_settings().recent_actions_limit
    recent = await get_recent_actions(db, caller_id, limit)

    week_start = datetime.combine(utc_today() - timedelta(days=6), time.min, tzinfo=timezone.utc)
    result = await db.execute(
        select(Action)
        .where(Action.user_id == caller_id, Action.timestamp >= week_start)
        .order_by(Action.timestamp.desc())
    )
    weekly = weekly_summary(list(result.scalars()))

    return RecentActionsResponse(
        actions=[ActionResponse.model_validate(a) for a in recent],
        weekly=[DailySummary(**day) for day in weekly],
    )
