"""Gamification API endpoints: tips, badge catalog, leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.auth.dependencies import get_caller_id
from ecotrack.config import get_settings
from ecotrack.database import get_session
from ecotrack.db.models import Badge
from ecotrack.gamification.leaderboard_service import get_leaderboard_page
from ecotrack.gamification.schemas import (
    AllBadgesResponse,
    BadgeResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    TipRecommendationsResponse,
    TipResponse,
)
from ecotrack.gamification.tips_service import recommend_tips

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


@router.get("/tips/recommendations", response_model=TipRecommendationsResponse)
async def tip_recommendations(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_session),
):
    """Tips for categories the caller has not logged recently."""
    tips = await recommend_tips(db, caller_id)
    return TipRecommendationsResponse(
        suggestions=[TipResponse.model_validate(t) for t in tips],
    )


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(db: AsyncSession = Depends(get_session)):
    """Get the badge catalog."""
    result = await db.execute(select(Badge).order_by(Badge.sort_order, Badge.id))
    return AllBadgesResponse(
        badges=[BadgeResponse.model_validate(b) for b in result.scalars()],
    )


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Leaderboard ordered by points."""
    if per_page is None:
        per_page = get_settings().leaderboard_page_size
    offset = (page - 1) * per_page
    rows, total = await get_leaderboard_page(db, limit=per_page, offset=offset)
    return LeaderboardResponse(
        entries=[
            LeaderboardEntryResponse(
                rank=offset + i + 1,
                user_id=row.user_id,
                name=row.name,
                points=row.points,
                co2_saved=row.co2_saved,
                last_updated=row.last_updated,
            )
            for i, row in enumerate(rows)
        ],
        total=total,
        page=page,
        per_page=per_page,
    )
