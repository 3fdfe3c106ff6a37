"""Fixed-window request rate limiting backed by Redis.

Each client IP gets a counter per window. The first hit of a window sets
the key's expiry; once the counter passes the limit every request is
rejected until the key expires.
"""

from dataclasses import dataclass

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.core.errors import RateLimitExceededError
from src.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitState:
    """Counter state after a hit."""

    limit: int
    count: int
    reset_seconds: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)


class RateLimiter:
    """Per-client fixed-window counter."""

    def __init__(
        self,
        client: redis.Redis | None,
        limit: int,
        window_seconds: int,
        prefix: str = "ratelimit",
    ):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    @property
    def enabled(self) -> bool:
        return self.client is not None and self.limit > 0

    def key_for(self, client_id: str) -> str:
        return f"{self.prefix}:{client_id}"

    async def hit(self, client_id: str) -> RateLimitState | None:
        """Count a request from ``client_id``.

        Returns:
            Counter state, or None when the limiter is disabled or Redis
            failed (requests are let through)

        Raises:
            RateLimitExceededError: The client is over the limit
        """
        if not self.enabled:
            return None

        key = self.key_for(client_id)
        try:
            pipe = self.client.pipeline()
            pipe.incr(key)
            pipe.ttl(key)
            count, ttl = await pipe.execute()
            if ttl is None or ttl < 0:
                await self.client.expire(key, self.window_seconds)
                ttl = self.window_seconds
        except RedisError as e:
            logger.warning("rate_limit_unavailable", error=str(e))
            return None

        state = RateLimitState(limit=self.limit, count=int(count), reset_seconds=ttl)
        if state.count > self.limit:
            logger.warning(
                "rate_limit_exceeded",
                client_ip=client_id,
                count=state.count,
                limit=self.limit,
            )
            raise RateLimitExceededError
        return state
