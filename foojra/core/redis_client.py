"""
Foojra API — Redis connection used for idempotency replay storage
"""
import asyncio

import redis.asyncio as aioredis
from foojra.core.config import get_settings

settings = get_settings()

_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    return _client


async def ping_redis() -> str:
    """Return "ok" or a short error description; never raises."""
    try:
        await asyncio.wait_for(get_redis().ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        return "ok"
    except Exception as exc:
        return f"error: {str(exc)[:100]}"


async def close_redis():
    global _client
    if _client:
        await _client.aclose()
        _client = None
