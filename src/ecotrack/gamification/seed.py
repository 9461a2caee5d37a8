"""Badge and eco-tip catalog seed data (idempotent upserts)."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.db.dialect import insert_for
from ecotrack.db.models import Badge, EcoTip

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Welcome (granted at sign-up, no thresholds)
    {
        "name": "Green Starter",
        "description": "Joined the community and took the first step",
        "points_required": None,
        "streak_required": None,
        "icon": "leaf",
        "sort_order": 1,
    },
    # Points milestones
    {
        "name": "Eco Enthusiast",
        "description": "Earn 100 points from eco-actions",
        "points_required": 100,
        "streak_required": None,
        "icon": "sprout",
        "sort_order": 2,
    },
    {
        "name": "Planet Protector",
        "description": "Earn 500 points from eco-actions",
        "points_required": 500,
        "streak_required": None,
        "icon": "globe",
        "sort_order": 3,
    },
    {
        "name": "Climate Champion",
        "description": "Earn 1,000 points from eco-actions",
        "points_required": 1000,
        "streak_required": None,
        "icon": "trophy",
        "sort_order": 4,
    },
    # Streaks
    {
        "name": "Consistent Contributor",
        "description": "Log an eco-action 3 days in a row",
        "points_required": None,
        "streak_required": 3,
        "icon": "flame",
        "sort_order": 5,
    },
    {
        "name": "Weekly Warrior",
        "description": "Log an eco-action 7 days in a row",
        "points_required": None,
        "streak_required": 7,
        "icon": "calendar",
        "sort_order": 6,
    },
    {
        "name": "Habit Hero",
        "description": "Log an eco-action 30 days in a row, or earn 2,500 points",
        "points_required": 2500,
        "streak_required": 30,
        "icon": "award",
        "sort_order": 7,
    },
]

TIP_SEED_DATA: list[dict] = [
    {
        "title": "Take the bus to work",
        "description": "Swap one car commute a week for public transport.",
        "category": "Public Transport",
        "sort_order": 1,
    },
    {
        "title": "Cycle short trips",
        "description": "Trips under 5 km are often faster by bike.",
        "category": "Cycling",
        "sort_order": 2,
    },
    {
        "title": "Sort your recycling",
        "description": "Rinse containers and separate paper, glass and plastics.",
        "category": "Recycling",
        "sort_order": 3,
    },
    {
        "title": "Plant a tree",
        "description": "Join a local planting day or start with a balcony plant.",
        "category": "Planting",
        "sort_order": 4,
    },
    {
        "title": "Switch to a green tariff",
        "description": "Ask your provider about solar or renewable energy plans.",
        "category": "Solar Energy",
        "sort_order": 5,
    },
    {
        "title": "Unplug idle devices",
        "description": "Standby power adds up: switch devices off at the wall.",
        "category": "Energy Saving",
        "sort_order": 6,
    },
    {
        "title": "Use a reusable bottle",
        "description": "Carry a refillable bottle instead of buying plastic.",
        "category": "Recycling",
        "sort_order": 7,
    },
    {
        "title": "Lower the thermostat",
        "description": "One degree lower cuts heating energy by around 6%.",
        "category": "Energy Saving",
        "sort_order": 8,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Upsert the badge catalog. Returns number of badges seeded."""
    insert = insert_for(db)
    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        stmt = insert(Badge).values(**badge_data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={
                "description": stmt.excluded.description,
                "points_required": stmt.excluded.points_required,
                "streak_required": stmt.excluded.streak_required,
                "icon": stmt.excluded.icon,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badges", seeded)
    return seeded


async def seed_tips(db: AsyncSession) -> int:
    """Upsert the eco-tip catalog. Returns number of tips seeded."""
    insert = insert_for(db)
    seeded = 0
    for tip_data in TIP_SEED_DATA:
        stmt = insert(EcoTip).values(**tip_data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["title"],
            set_={
                "description": stmt.excluded.description,
                "category": stmt.excluded.category,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d eco tips", seeded)
    return seeded
