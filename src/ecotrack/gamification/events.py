"""Domain events consumed by the gamification engine.

Events travel as Redis Stream entries with the JSON payload in the
``data`` field, the same envelope the external producers use.
"""

from __future__ import annotations

import json
from datetime import datetime

from pydantic import BaseModel, Field

ACTION_CREATED_STREAM = "eco:action_created"
USER_CREATED_STREAM = "eco:user_created"


class ActionCreatedEvent(BaseModel):
    action_id: int
    user_id: str
    type: str
    points: int = Field(gt=0)
    co2_saved: float = Field(default=0.0, ge=0)
    timestamp: datetime


class UserCreatedEvent(BaseModel):
    user_id: str
    email: str | None = None


def parse_stream_entry(raw_data: dict) -> dict:
    """Extract the event payload from a stream entry.

    Producers put JSON in ``data``; entries without it are taken as flat fields.
    """
    data_str = raw_data.get("data")
    if isinstance(data_str, str):
        try:
            return json.loads(data_str)
        except json.JSONDecodeError:
            return dict(raw_data)
    return dict(raw_data)


async def publish_event(redis: object, stream: str, event: BaseModel) -> str:
    """Append an event to its stream. Returns the stream entry id.

    Producer helper for the action/user submission services that feed this
    engine; the consumer side never calls it.
    """
    entry_id = await redis.xadd(  # type: ignore[union-attr]
        stream,
        {"event": stream.split(":", 1)[-1], "data": event.model_dump_json()},
    )
    return entry_id if isinstance(entry_id, str) else entry_id.decode()
