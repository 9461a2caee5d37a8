"""Eco-tip recommendations for categories the caller has not exercised recently."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.config import get_settings
from ecotrack.db.models import Action, EcoTip

logger = logging.getLogger(__name__)


class UnauthenticatedError(PermissionError):
    """Raised when a caller-scoped operation runs without a verified identity."""


async def recent_action_types(db: AsyncSession, user_id: str, limit: int) -> list[str]:
    """Category labels of the user's most recent actions, newest first."""
    result = await db.execute(
        select(Action.type)
        .where(Action.user_id == user_id)
        .order_by(Action.timestamp.desc())
        .limit(limit)
    )
    return list(result.scalars())


async def recommend_tips(
    db: AsyncSession,
    caller_id: str | None,
    limit: int | None = None,
) -> list[EcoTip]:
    """Up to ``limit`` tips whose category is not among the caller's recent actions.

    With no recent actions the first tips of the catalog are returned
    unfiltered. The exclusion list holds at most ``tip_history_limit``
    labels, one per recent action.
    """
    if not caller_id:
        msg = "Authentication required"
        raise UnauthenticatedError(msg)

    settings = get_settings()
    if limit is None:
        limit = settings.tip_limit

    recent = await recent_action_types(db, caller_id, settings.tip_history_limit)
    query = select(EcoTip).order_by(EcoTip.sort_order, EcoTip.id).limit(limit)
    if recent:
        query = query.where(EcoTip.category.not_in(sorted(set(recent))))

    result = await db.execute(query)
    tips = list(result.scalars())
    logger.debug("Recommended %d tips for %s (excluded %s)", len(tips), caller_id, recent)
    return tips
