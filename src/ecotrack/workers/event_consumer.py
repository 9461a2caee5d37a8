"""Redis Stream consumer for eco-action domain events.

Reads ``eco:action_created`` and ``eco:user_created`` with XREADGROUP and
hands each event to its gamification handler in a fresh database session.
Handled events are acknowledged; events whose handler raised stay pending
so they can be redelivered. Every handler is safe to run twice.
"""

from __future__ import annotations

import asyncio
import logging
import time

import redis.asyncio as aioredis
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ecotrack.gamification.events import (
    ACTION_CREATED_STREAM,
    USER_CREATED_STREAM,
    ActionCreatedEvent,
    UserCreatedEvent,
    parse_stream_entry,
)
from ecotrack.gamification.stats_service import apply_action
from ecotrack.users.service import initialize_user

logger = logging.getLogger(__name__)

CONSUMER_GROUP = "gamification-consumers"

STREAM_HANDLERS: dict[str, str] = {
    ACTION_CREATED_STREAM: "_handle_action_created",
    USER_CREATED_STREAM: "_handle_user_created",
}


class EcoEventConsumer:
    """Processes eco-action events from Redis Streams."""

    def __init__(
        self,
        redis_client: aioredis.Redis,
        session_factory: async_sessionmaker[AsyncSession],
        consumer_name: str = "eco-worker-1",
        group: str = CONSUMER_GROUP,
        retry_interval: float = 30.0,
    ) -> None:
        self.redis = redis_client
        self.session_factory = session_factory
        self.consumer_name = consumer_name
        self.group = group
        self.retry_interval = retry_interval
        self._running = False
        self._processed = 0
        self._errors = 0

    async def setup_groups(self) -> None:
        """Create consumer groups for all streams (idempotent)."""
        for stream in STREAM_HANDLERS:
            try:
                await self.redis.xgroup_create(stream, self.group, id="0", mkstream=True)
                logger.info("Created consumer group %s for %s", self.group, stream)
            except aioredis.ResponseError as e:
                if "BUSYGROUP" not in str(e):
                    raise

    async def consume(self, count: int = 100, block_ms: int = 5000, pending: bool = False) -> int:
        """Read and process a batch of events from all streams.

        With ``pending=True`` the batch is this consumer's own delivered but
        unacknowledged entries (id ``0``) instead of new ones (``>``).

        Returns:
            Number of events processed.
        """
        start_id = "0" if pending else ">"
        streams = {s: start_id for s in STREAM_HANDLERS}
        try:
            events = await self.redis.xreadgroup(
                groupname=self.group,
                consumername=self.consumer_name,
                streams=streams,
                count=count,
                block=None if pending else block_ms,
            )
        except aioredis.ResponseError as e:
            logger.error("XREADGROUP error: %s", e)
            return 0

        if not events:
            return 0

        processed = 0
        for stream_name, messages in events:
            stream_str = stream_name if isinstance(stream_name, str) else stream_name.decode()
            for msg_id, raw_data in messages:
                if not raw_data:
                    # Pending entry trimmed from the stream; nothing left to apply.
                    await self.redis.xack(stream_str, self.group, msg_id)
                    continue
                if await self.handle(stream_str, msg_id, raw_data):
                    processed += 1
        return processed

    async def retry_pending(self, count: int = 100) -> int:
        """Re-run entries whose handler failed earlier. Returns how many succeeded."""
        processed = await self.consume(count=count, pending=True)
        if processed:
            logger.info("Recovered %d pending events", processed)
        return processed

    async def handle(self, stream: str, msg_id: str, raw_data: dict) -> bool:
        """Dispatch one stream entry. Returns True if it was handled and acknowledged."""
        handler_name = STREAM_HANDLERS.get(stream)
        if handler_name is None:
            return False

        handler = getattr(self, handler_name)
        data = parse_stream_entry(raw_data)
        try:
            await handler(data)
        except ValidationError:
            # Malformed payloads can never succeed; drop them.
            self._errors += 1
            logger.exception("Invalid %s payload in %s, discarding", stream, msg_id)
            await self.redis.xack(stream, self.group, msg_id)
            return False
        except Exception:
            self._errors += 1
            logger.exception("Error handling %s message %s", stream, msg_id)
            return False

        await self.redis.xack(stream, self.group, msg_id)
        self._processed += 1
        return True

    async def run(self, count: int = 100, block_ms: int = 5000) -> None:
        """Main consumer loop, runs until stop() is called.

        Pending entries are retried on startup and then every
        ``retry_interval`` seconds.
        """
        await self.setup_groups()
        self._running = True
        logger.info("Eco event consumer started (consumer=%s)", self.consumer_name)

        last_retry: float | None = None
        while self._running:
            try:
                now = time.monotonic()
                if last_retry is None or now - last_retry >= self.retry_interval:
                    last_retry = now
                    await self.retry_pending(count=count)
                await self.consume(count=count, block_ms=block_ms)
            except Exception:
                logger.exception("Consumer loop error")
                await asyncio.sleep(1)

    def stop(self) -> None:
        """Signal the consumer to stop."""
        self._running = False

    # --- Event Handlers ---

    async def _handle_action_created(self, data: dict) -> None:
        event = ActionCreatedEvent.model_validate(data)
        async with self.session_factory() as db:
            user = await apply_action(db, self.redis, event)
        if user is not None:
            logger.info(
                "Applied action %s for %s: points=%d streak=%d",
                event.action_id, event.user_id, user.total_points, user.streak,
            )

    async def _handle_user_created(self, data: dict) -> None:
        event = UserCreatedEvent.model_validate(data)
        async with self.session_factory() as db:
            await initialize_user(db, event)
