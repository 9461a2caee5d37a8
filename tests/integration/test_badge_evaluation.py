"""Badge evaluation: single grant per badge, one notification per batch."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

from sqlalchemy import func, select

from ecotrack.db.models import Notification, UserBadge
from ecotrack.gamification.badge_service import evaluate_badges, get_badge_by_name, grant_badge, has_badge
from tests.conftest import create_user


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


class TestEvaluateBadges:
    async def test_nothing_qualifies(self, seeded_db):
        await create_user(seeded_db, total_points=50, streak=1)

        assert await evaluate_badges(seeded_db, None, "user-1") == []
        assert await _count(seeded_db, UserBadge) == 0
        assert await _count(seeded_db, Notification) == 0

    async def test_batch_grant_with_single_notification(self, seeded_db):
        await create_user(seeded_db, total_points=150, streak=3)

        granted = await evaluate_badges(seeded_db, None, "user-1")

        assert granted == ["Eco Enthusiast", "Consistent Contributor"]
        notes = list((await seeded_db.execute(select(Notification))).scalars())
        assert len(notes) == 1
        assert notes[0].type == "badge"
        assert notes[0].read is False
        assert notes[0].message == "You earned new badges: Eco Enthusiast, Consistent Contributor"

    async def test_second_evaluation_grants_nothing(self, seeded_db):
        await create_user(seeded_db, total_points=150)

        await evaluate_badges(seeded_db, None, "user-1")
        assert await evaluate_badges(seeded_db, None, "user-1") == []

        assert await _count(seeded_db, UserBadge) == 1
        assert await _count(seeded_db, Notification) == 1

    async def test_streak_alone_grants_combined_badge(self, seeded_db):
        await create_user(seeded_db, total_points=0, streak=30)

        granted = await evaluate_badges(seeded_db, None, "user-1")

        assert "Habit Hero" in granted
        assert "Weekly Warrior" in granted

    async def test_unknown_user(self, seeded_db):
        assert await evaluate_badges(seeded_db, None, "nobody") == []

    async def test_empty_catalog(self, db_session):
        await create_user(db_session, total_points=10_000, streak=100)

        assert await evaluate_badges(db_session, None, "user-1") == []
        assert await _count(db_session, Notification) == 0

    async def test_concurrent_evaluations_grant_once(self, session_factory, seeded_db):
        await create_user(seeded_db, total_points=600)

        async def _evaluate():
            async with session_factory() as db:
                return await evaluate_badges(db, None, "user-1")

        results = await asyncio.gather(_evaluate(), _evaluate())

        granted = [names for names in results if names]
        assert granted == [["Eco Enthusiast", "Planet Protector"]]
        assert await _count(seeded_db, UserBadge) == 2
        assert await _count(seeded_db, Notification) == 1

    async def test_notification_pushed_to_user_channel(self, seeded_db):
        await create_user(seeded_db, total_points=100)
        redis = AsyncMock()

        await evaluate_badges(seeded_db, redis, "user-1")

        channel, raw = redis.publish.await_args.args
        assert channel == "ws:user:user-1"
        payload = json.loads(raw)
        assert payload["event"] == "notification"
        assert payload["data"]["badges"] == ["Eco Enthusiast"]

    async def test_push_failure_keeps_grant(self, seeded_db):
        await create_user(seeded_db, total_points=100)
        redis = AsyncMock()
        redis.publish.side_effect = ConnectionError("redis down")

        assert await evaluate_badges(seeded_db, redis, "user-1") == ["Eco Enthusiast"]
        assert await _count(seeded_db, UserBadge) == 1


class TestGrantBadge:
    async def test_grant_once(self, seeded_db):
        await create_user(seeded_db)
        badge = await get_badge_by_name(seeded_db, "Green Starter")

        assert await grant_badge(seeded_db, "user-1", badge) is True
        assert await grant_badge(seeded_db, "user-1", badge) is False
        assert await has_badge(seeded_db, "user-1", badge.id) is True
        assert await _count(seeded_db, UserBadge) == 1

    async def test_missing_badge_lookup(self, seeded_db):
        assert await get_badge_by_name(seeded_db, "Nope") is None
