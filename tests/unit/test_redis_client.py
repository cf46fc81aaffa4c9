"""Unit tests for RedisClient."""

from unittest.mock import AsyncMock, patch

import pytest
import redis.asyncio as redis

from collection_service.domain.exceptions import DependencyError
from collection_service.infrastructure.redis_client import RedisClient


def connected_redis() -> AsyncMock:
    mock_redis = AsyncMock()
    mock_redis.ping = AsyncMock(return_value=True)
    mock_redis.aclose = AsyncMock()
    return mock_redis


class TestRedisClient:
    def test_init_with_default_url(self) -> None:
        with patch("collection_service.infrastructure.redis_client.settings") as mock_settings:
            mock_settings.redis_url = "redis://localhost:6379/0"

            client = RedisClient()

            assert client._url == "redis://localhost:6379/0"

    def test_client_property_raises_when_not_connected(self) -> None:
        client = RedisClient(url="redis://localhost:6379/0")

        with pytest.raises(RuntimeError, match="Redis client not connected"):
            _ = client.client

    async def test_connect_success(self) -> None:
        client = RedisClient(url="redis://localhost:6379/0")
        mock_redis = connected_redis()

        with patch(
            "collection_service.infrastructure.redis_client.redis.from_url",
            return_value=mock_redis,
        ) as mock_from_url:
            await client.connect()

        mock_from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=False)
        mock_redis.ping.assert_called_once()
        assert client.client is mock_redis

    async def test_connect_does_not_log_password(self) -> None:
        client = RedisClient(url="redis://:hunter2@cache:6380/1")

        with (
            patch(
                "collection_service.infrastructure.redis_client.redis.from_url",
                return_value=connected_redis(),
            ),
            patch("collection_service.infrastructure.redis_client.logger") as mock_logger,
        ):
            await client.connect()

        mock_logger.info.assert_called_once_with("redis_connected", url="redis://cache:6380/1")

    async def test_connect_failure_is_dependency_error(self) -> None:
        client = RedisClient(url="redis://invalid-host:6379/0")
        mock_redis = connected_redis()
        mock_redis.ping.side_effect = redis.RedisError("Cannot connect")

        with (
            patch(
                "collection_service.infrastructure.redis_client.redis.from_url",
                return_value=mock_redis,
            ),
            pytest.raises(DependencyError, match="Cannot connect"),
        ):
            await client.connect()

        mock_redis.aclose.assert_called_once()
        assert await client.ping() is False

    async def test_close(self) -> None:
        client = RedisClient(url="redis://localhost:6379/0")
        mock_redis = connected_redis()

        with patch(
            "collection_service.infrastructure.redis_client.redis.from_url",
            return_value=mock_redis,
        ):
            await client.connect()
            await client.close()

        mock_redis.aclose.assert_called_once()
        assert await client.ping() is False

    async def test_close_when_not_connected(self) -> None:
        client = RedisClient(url="redis://localhost:6379/0")

        await client.close()

        assert await client.ping() is False


class TestRedisPing:
    async def test_ping_when_healthy(self) -> None:
        client = RedisClient(url="redis://localhost:6379/0")
        client._client = connected_redis()

        assert await client.ping() is True

    async def test_ping_failure(self) -> None:
        client = RedisClient(url="redis://localhost:6379/0")
        mock_redis = connected_redis()
        mock_redis.ping.side_effect = redis.RedisError("Connection lost")
        client._client = mock_redis

        assert await client.ping() is False

    async def test_ping_when_not_connected(self) -> None:
        client = RedisClient(url="redis://localhost:6379/0")

        assert await client.ping() is False
