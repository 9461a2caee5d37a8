"""Event payload parsing and validation."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from ecotrack.gamification.events import (
    ACTION_CREATED_STREAM,
    ActionCreatedEvent,
    UserCreatedEvent,
    parse_stream_entry,
    publish_event,
)

VALID = {
    "action_id": 7,
    "user_id": "user-1",
    "type": "Cycling",
    "points": 10,
    "co2_saved": 2.5,
    "timestamp": "2026-03-15T08:00:00Z",
}


class TestActionCreatedEvent:
    def test_valid_payload(self):
        event = ActionCreatedEvent.model_validate(VALID)
        assert event.points == 10
        assert event.timestamp.tzinfo is not None

    def test_co2_defaults_to_zero(self):
        data = {k: v for k, v in VALID.items() if k != "co2_saved"}
        assert ActionCreatedEvent.model_validate(data).co2_saved == 0.0

    def test_points_must_be_positive(self):
        with pytest.raises(ValidationError):
            ActionCreatedEvent.model_validate({**VALID, "points": 0})

    def test_negative_co2_rejected(self):
        with pytest.raises(ValidationError):
            ActionCreatedEvent.model_validate({**VALID, "co2_saved": -1})


class TestParseStreamEntry:
    def test_json_data_field(self):
        raw = {"event": "user_created", "data": json.dumps({"user_id": "u1"})}
        assert parse_stream_entry(raw) == {"user_id": "u1"}

    def test_flat_entry_without_data(self):
        raw = {"user_id": "u1", "email": "a@b.c"}
        assert parse_stream_entry(raw) == raw

    def test_invalid_json_falls_back_to_entry(self):
        raw = {"data": "{not json"}
        assert parse_stream_entry(raw) == raw


class TestPublishEvent:
    async def test_xadd_envelope(self):
        redis = AsyncMock()
        redis.xadd.return_value = "1-0"
        event = UserCreatedEvent(user_id="u1", email="a@b.c")

        entry_id = await publish_event(redis, ACTION_CREATED_STREAM, event)

        assert entry_id == "1-0"
        stream, fields = redis.xadd.await_args.args
        assert stream == ACTION_CREATED_STREAM
        assert fields["event"] == "action_created"
        assert json.loads(fields["data"]) == {"user_id": "u1", "email": "a@b.c"}
