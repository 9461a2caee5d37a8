"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


# --- Tips ---


class TipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    category: str


class TipRecommendationsResponse(BaseModel):
    suggestions: list[TipResponse]


# --- Badges ---


class BadgeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    points_required: int | None = None
    streak_required: int | None = None
    icon: str | None = None


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


# --- Leaderboard ---


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    name: str
    points: int
    co2_saved: float
    last_updated: datetime


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]
    total: int
    page: int
    per_page: int
