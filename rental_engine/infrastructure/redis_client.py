"""Redis async client factory."""

from typing import Optional

import redis.asyncio as aioredis

from rental_engine.config import settings


def create_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Client with its own pool; string responses are decoded."""
    return aioredis.from_url(url or settings.redis_url, decode_responses=True)
