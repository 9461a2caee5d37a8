"""Dialect-specific statement helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(db: AsyncSession) -> Any:
    """INSERT construct with ON CONFLICT support for the session's backend."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert
