"""Integration tests for RedisClient with real Redis."""

from collections.abc import Iterator

import pytest
from testcontainers.redis import RedisContainer

from collection_service.domain.exceptions import DependencyError
from collection_service.infrastructure.redis_client import RedisClient


pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def redis_container() -> Iterator[RedisContainer]:
    with RedisContainer("redis:7-alpine") as container:
        yield container


@pytest.fixture
def redis_url(redis_container: RedisContainer) -> str:
    host = redis_container.get_container_host_ip()
    port = redis_container.get_exposed_port(6379)
    return f"redis://{host}:{port}/0"


class TestRedisClientIntegration:
    async def test_connect_and_ping(self, redis_url: str) -> None:
        client = RedisClient(url=redis_url)

        await client.connect()

        assert client.client is not None
        assert await client.ping() is True
        await client.close()

    async def test_ping_after_close(self, redis_url: str) -> None:
        client = RedisClient(url=redis_url)
        await client.connect()
        await client.close()

        assert await client.ping() is False

    async def test_sorted_set_operations(self, redis_url: str) -> None:
        """The commands the rate limiter pipelines."""
        client = RedisClient(url=redis_url)
        await client.connect()
        key = "test_sorted_set"

        await client.client.zadd(key, {"member1": 1.0, "member2": 2.0, "member3": 3.0})
        assert await client.client.zcard(key) == 3
        assert await client.client.zremrangebyscore(key, 0, 1.5) == 1
        assert await client.client.zcard(key) == 2

        await client.client.delete(key)
        await client.close()

    async def test_reconnect_after_close(self, redis_url: str) -> None:
        client = RedisClient(url=redis_url)

        await client.connect()
        await client.client.set("test_reconnect", "value1")
        await client.close()
        await client.connect()

        assert await client.client.get("test_reconnect") == b"value1"
        await client.client.delete("test_reconnect")
        await client.close()


class TestRedisClientConnectionFailure:
    async def test_connect_to_unreachable_host(self) -> None:
        client = RedisClient(url="redis://localhost:1/0")

        with pytest.raises(DependencyError):
            await client.connect()

        assert await client.ping() is False
