"""User onboarding: zeroed stats plus the welcome badge."""

from __future__ import annotations

from sqlalchemy import select, update

from ecotrack.db.models import User, UserBadge
from ecotrack.gamification.events import UserCreatedEvent
from ecotrack.users.service import get_or_create_user, initialize_user


async def _badges(db) -> list[str]:
    result = await db.execute(select(UserBadge))
    return [ub.badge.name for ub in result.unique().scalars()]


class TestInitializeUser:
    async def test_creates_zeroed_stats_and_welcome_badge(self, seeded_db):
        user = await initialize_user(seeded_db, UserCreatedEvent(user_id="u1", email="ada@example.com"))

        assert user.total_points == 0
        assert user.total_co2_saved == 0.0
        assert user.streak == 0
        assert user.last_action_date is None
        assert user.name == "ada"
        assert user.created_at is not None
        assert await _badges(seeded_db) == ["Green Starter"]

    async def test_rerun_keeps_existing_totals(self, seeded_db):
        event = UserCreatedEvent(user_id="u1", email="ada@example.com")
        await initialize_user(seeded_db, event)
        await seeded_db.execute(update(User).where(User.id == "u1").values(total_points=50))
        await seeded_db.commit()

        user = await initialize_user(seeded_db, event)

        assert user.total_points == 50
        assert await _badges(seeded_db) == ["Green Starter"]

    async def test_missing_welcome_badge_is_skipped(self, db_session):
        user = await initialize_user(db_session, UserCreatedEvent(user_id="u1"))

        assert user.id == "u1"
        assert user.name is None
        assert await _badges(db_session) == []

    async def test_welcome_badge_name_is_configurable(self, seeded_db, monkeypatch):
        from ecotrack.config import get_settings

        monkeypatch.setenv("ECO_WELCOME_BADGE_NAME", "Eco Enthusiast")
        get_settings.cache_clear()

        await initialize_user(seeded_db, UserCreatedEvent(user_id="u1"))

        assert await _badges(seeded_db) == ["Eco Enthusiast"]


class TestGetOrCreateUser:
    async def test_returns_existing(self, db_session):
        _, created = await get_or_create_user(db_session, "u1", "a@b.c")
        user, created_again = await get_or_create_user(db_session, "u1", "other@b.c")

        assert created is True
        assert created_again is False
        assert user.email == "a@b.c"
