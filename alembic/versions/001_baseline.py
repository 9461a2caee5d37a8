"""Baseline: eco-action gamification schema.

Creates users, actions, badges, user_badges, leaderboard, notifications
and eco_tips. Badge and tip catalogs are seeded by the API on startup.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(128) PRIMARY KEY,
            email VARCHAR(320),
            name VARCHAR(128),
            total_points BIGINT NOT NULL DEFAULT 0,
            total_co2_saved DOUBLE PRECISION NOT NULL DEFAULT 0,
            streak INTEGER NOT NULL DEFAULT 0,
            last_action_date TIMESTAMPTZ,
            profile_image TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ,
            last_login TIMESTAMPTZ
        )
    """)

    # --- Actions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS actions (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL,
            type VARCHAR(64) NOT NULL,
            points INTEGER NOT NULL,
            co2_saved DOUBLE PRECISION NOT NULL DEFAULT 0,
            timestamp TIMESTAMPTZ NOT NULL,
            applied_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_actions_user_ts
        ON actions(user_id, timestamp)
    """)

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id SERIAL PRIMARY KEY,
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            points_required INTEGER,
            streak_required INTEGER,
            icon VARCHAR(64),
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """)

    # --- User Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id INTEGER NOT NULL REFERENCES badges(id),
            earned_at TIMESTAMPTZ NOT NULL,
            CONSTRAINT user_badges_user_id_badge_id_key UNIQUE(user_id, badge_id)
        )
    """)

    # --- Leaderboard ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS leaderboard (
            user_id VARCHAR(128) PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            points BIGINT NOT NULL DEFAULT 0,
            co2_saved DOUBLE PRECISION NOT NULL DEFAULT 0,
            last_updated TIMESTAMPTZ NOT NULL
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_leaderboard_points
        ON leaderboard(points)
    """)

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(32) NOT NULL,
            message TEXT NOT NULL,
            read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL
        )
    """)

    # --- Eco Tips ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS eco_tips (
            id SERIAL PRIMARY KEY,
            title VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            category VARCHAR(64) NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """)


def downgrade() -> None:
    for table in ("eco_tips", "notifications", "leaderboard", "user_badges", "badges", "actions", "users"):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
