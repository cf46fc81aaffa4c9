from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from ulid import ULID


if TYPE_CHECKING:
    import redis.asyncio as redis

logger = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int


class SlidingWindowRateLimiter:
    """
    Sliding window rate limiter using Redis sorted sets.

    Allows `max_requests` per `window_seconds` for each identifier
    (merchant public key or client IP).
    """

    def __init__(
        self,
        redis_client: "redis.Redis[bytes]",
        max_requests: int = 100,
        window_seconds: int = 60,
        key_prefix: str = "collection:ratelimit:",
    ) -> None:
        self._redis = redis_client
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._key_prefix = key_prefix

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @property
    def max_requests(self) -> int:
        return self._max_requests

    async def check(self, identifier: str) -> RateLimitDecision:
        """Record one request for `identifier` and decide whether it may proceed."""
        key = f"{self._key_prefix}{identifier}"
        now = datetime.now(UTC).timestamp()
        window_start = now - self._window_seconds

        pipe = self._redis.pipeline()
        pipe.zremrangebyscore(key, 0, window_start)
        pipe.zcard(key)
        # Unique member per request; two requests in the same instant must both count
        pipe.zadd(key, {f"{now}:{ULID()}": now})
        pipe.expire(key, self._window_seconds)

        results: list[Any] = await pipe.execute()
        current_count = int(results[1])

        allowed = current_count < self._max_requests
        if not allowed:
            logger.warning(
                "rate_limit_window_full",
                identifier=identifier,
                current_count=current_count,
                max_requests=self._max_requests,
            )

        return RateLimitDecision(
            allowed=allowed,
            remaining=max(0, self._max_requests - current_count - 1),
            retry_after=self._window_seconds,
        )
