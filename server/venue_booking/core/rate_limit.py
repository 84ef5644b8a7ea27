"""Rate limiting for public-facing booking requests."""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from redis import asyncio as aioredis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""

    allowed: bool
    retry_after_seconds: int = 0


class RateLimiter(Protocol):
    """Interface for rate limiters held on the application and injected per request."""

    limit: int
    window_seconds: int

    async def check(self, key: str) -> RateLimitDecision:
        ...


class InMemoryRateLimiter:
    """
    Fixed-window rate limiter kept in process memory.

    Suitable for a single instance only. Expired windows are pruned lazily
    on each check.
    """

    def __init__(
        self,
        limit: int = 5,
        window_seconds: int = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        # key -> (count, reset_at)
        self._entries: dict[str, tuple[int, float]] = {}

    def _prune(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._entries.items() if now > reset_at]
        for key in expired:
            del self._entries[key]

    async def check(self, key: str) -> RateLimitDecision:
        now = self._clock()
        self._prune(now)

        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = (1, now + self.window_seconds)
            return RateLimitDecision(allowed=True)

        count, reset_at = entry
        if count >= self.limit:
            return RateLimitDecision(
                allowed=False,
                retry_after_seconds=max(1, math.ceil(reset_at - now)),
            )

        self._entries[key] = (count + 1, reset_at)
        return RateLimitDecision(allowed=True)


class RedisRateLimiter:
    """
    Sliding-window rate limiter backed by a Redis sorted set.

    Every instance sharing the Redis server shares the limit. Each accepted
    request is a member scored by its timestamp; members older than the
    window are trimmed before counting.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        limit: int = 5,
        window_seconds: int = 15 * 60,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisRateLimiter":
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        return cls(client, **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def check(self, key: str) -> RateLimitDecision:
        redis_key = self._key(key)
        now = self._clock()

        await self.client.zremrangebyscore(redis_key, 0, now - self.window_seconds)
        current_count = await self.client.zcard(redis_key)

        if current_count < self.limit:
            await self.client.zadd(redis_key, {f"{now}:{uuid4().hex}": now})
            await self.client.expire(redis_key, self.window_seconds)
            return RateLimitDecision(allowed=True)

        oldest = await self.client.zrange(redis_key, 0, 0, withscores=True)
        reset_at = oldest[0][1] + self.window_seconds if oldest else now + self.window_seconds
        logger.debug(
            "Rate limit reached",
            extra={"key": redis_key, "count": current_count}
        )
        return RateLimitDecision(
            allowed=False,
            retry_after_seconds=max(1, math.ceil(reset_at - now)),
        )

    async def close(self) -> None:
        await self.client.aclose()


def build_rate_limiter(
    limit: int,
    window_seconds: int,
    redis_url: str | None = None,
) -> RateLimiter:
    """Redis-backed limiter when a Redis URL is configured, in-process otherwise."""
    if redis_url:
        logger.info("Public booking rate limits shared through Redis")
        return RedisRateLimiter.from_url(redis_url, limit=limit, window_seconds=window_seconds)
    return InMemoryRateLimiter(limit=limit, window_seconds=window_seconds)
