"""
Redis client lifecycle.

Redis is optional: when ``REDIS_URL`` is empty no client is created and the
readiness probe reports it as skipped.
"""

from typing import Optional

from fastapi import Request
from redis.asyncio import Redis, from_url

from hvac_crm.core.config import settings


def create_redis(url: Optional[str] = None) -> Optional[Redis]:
    """Build a Redis client from the given URL or settings, if configured."""
    url = url if url is not None else settings.REDIS_URL
    if not url:
        return None
    return from_url(url, encoding="utf-8", decode_responses=True)


async def close_redis(client: Optional[Redis]) -> None:
    if client is not None:
        await client.aclose()


async def get_redis(request: Request) -> Optional[Redis]:
    """Dependency returning the application's Redis client (or None)."""
    return getattr(request.app.state, "redis", None)
