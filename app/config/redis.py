# app/config/redis.py
"""Redis access for health checks of the Celery broker"""
from typing import Optional

import redis.asyncio as redis

from app.config.settings import get_settings

_broker_client: Optional[redis.Redis] = None


def get_broker_client() -> redis.Redis:
    """Client for the redis instance email tasks are queued on"""
    global _broker_client
    if _broker_client is None:
        settings = get_settings()
        _broker_client = redis.Redis.from_url(
            settings.CELERY_BROKER_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=2,
        )
    return _broker_client


async def broker_reachable() -> bool:
    """Ping the broker; raises RedisError/OSError when it is down"""
    return bool(await get_broker_client().ping())
