"""Standalone runner for the eco event consumer.

Reads action/user events from Redis Streams and runs the stats
aggregator, leaderboard projector, badge evaluator and onboarding.

Usage: python -m ecotrack.workers.event_consumer_runner
"""

from __future__ import annotations

import asyncio
import logging
import signal

from ecotrack.config import get_settings
from ecotrack.database import close_db, get_session_factory, init_db
from ecotrack.middleware.logging import setup_logging
from ecotrack.redis_client import close_redis, init_redis
from ecotrack.workers.event_consumer import EcoEventConsumer

logger = logging.getLogger(__name__)


async def main() -> None:
    """Run the eco event consumer until SIGINT/SIGTERM."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)

    redis_client = await init_redis(settings.redis_url, max_connections=20)
    if redis_client is None:
        msg = "ECO_REDIS_URL is required for the event consumer"
        raise RuntimeError(msg)
    consumer = EcoEventConsumer(
        redis_client=redis_client,
        session_factory=get_session_factory(),
        consumer_name=settings.consumer_name,
        group=settings.consumer_group,
        retry_interval=settings.stream_retry_seconds,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, consumer.stop)

    logger.info("Starting eco event consumer (consumer=%s)", settings.consumer_name)

    try:
        await consumer.run(count=settings.stream_batch_size, block_ms=settings.stream_block_ms)
    finally:
        await close_redis()
        await close_db()
        logger.info("Eco event consumer stopped")


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
