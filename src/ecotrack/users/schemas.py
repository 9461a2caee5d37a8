"""Response schemas for the caller's own stats endpoints."""

from __future__ import annotations

from datetime import date as Date
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    email: str | None = None
    total_points: int
    total_co2_saved: float
    streak: int
    last_action_date: datetime | None = None
    profile_image: str = ""


class EarnedBadgeResponse(BaseModel):
    badge_id: int
    name: str
    description: str
    earned_at: datetime


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_available: int
    total_earned: int


class ActionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    points: int
    co2_saved: float
    timestamp: datetime


class DailySummary(BaseModel):
    date: Date
    points: int
    co2_saved: float


class RecentActionsResponse(BaseModel):
    actions: list[ActionResponse]
    weekly: list[DailySummary]
