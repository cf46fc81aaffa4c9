from urllib.parse import urlsplit

import redis.asyncio as redis
import structlog

from collection_service.config import settings
from collection_service.domain.exceptions import DependencyError


logger = structlog.get_logger()


def _redacted(url: str) -> str:
    parts = urlsplit(url)
    host = parts.hostname or ""
    port = f":{parts.port}" if parts.port else ""
    return f"{parts.scheme}://{host}{port}{parts.path}"


class RedisClient:
    """Connection holder for the Redis instance backing the rate limiter."""

    def __init__(self, url: str | None = None) -> None:
        self._url = url or settings.redis_url
        self._client: redis.Redis[bytes] | None = None

    @property
    def client(self) -> "redis.Redis[bytes]":
        if self._client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client

    async def connect(self) -> None:
        client: redis.Redis[bytes] = redis.from_url(self._url, decode_responses=False)
        try:
            await client.ping()
        except redis.RedisError as e:
            await client.aclose()
            raise DependencyError("redis_connect", str(e)) from e
        self._client = client
        logger.info("redis_connected", url=_redacted(self._url))

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("redis_disconnected")

    async def ping(self) -> bool:
        """Readiness probe used by the health endpoint."""
        if self._client is None:
            return False
        try:
            await self._client.ping()
        except redis.RedisError as e:
            logger.warning("redis_ping_failed", error=str(e))
            return False
        return True
