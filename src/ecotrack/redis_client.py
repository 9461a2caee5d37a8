"""Shared Redis client.

Used by /ready for the connectivity check and by the event consumer for
the streams and notification pushes. An unset ``redis_url`` leaves the client
disabled instead of failing API startup.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str | None, max_connections: int = 50) -> redis.Redis | None:
    """Create the shared client. Returns None (disabled) when no URL is configured."""
    global _client  # noqa: PLW0603
    if not url:
        _client = None
        return None
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    return _client


async def close_redis() -> None:
    """Close the shared client."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis_or_none() -> redis.Redis | None:
    """The shared client, or None when Redis is disabled or not initialized."""
    return _client
