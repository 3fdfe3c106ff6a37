"""Redis connection management.

Provides the async Redis client backing the request rate limiter.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.config.settings import Settings
from src.core.logging import get_logger


logger = get_logger(__name__)


async def init_redis(settings: Settings) -> redis.Redis:
    """Create a Redis client and check it answers."""
    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        decode_responses=True,
    )

    try:
        await client.ping()
        logger.info("redis_connected", url=settings.redis_url)
    except RedisError as e:
        logger.warning("redis_connection_failed", error=str(e))
        await client.aclose()
        raise

    return client


async def shutdown_redis(client: redis.Redis | None) -> None:
    """Close Redis connection."""
    if client is not None:
        await client.aclose()
        logger.info("redis_disconnected")
