import asyncio
import signal
from typing import NoReturn

import structlog

from collection_service.api.app import create_app
from collection_service.api.http_server import HttpServer
from collection_service.config import settings
from collection_service.infrastructure.database import Database
from collection_service.infrastructure.redis_client import RedisClient
from collection_service.logging import configure_logging


logger = structlog.get_logger()


async def main() -> NoReturn:
    configure_logging(
        level=settings.log_level,
        log_format=settings.log_format,
    )

    logger.info(
        "starting_collection_service",
        http_port=settings.http_port,
        log_level=settings.log_level,
        rate_limit_enabled=settings.rate_limit_enabled,
        metrics_enabled=settings.metrics_enabled,
        remote_call_timeout_seconds=settings.remote_call_timeout_seconds,
    )

    database = Database(settings.database_url)

    redis_client: RedisClient | None = None
    if settings.rate_limit_enabled:
        redis_client = RedisClient(settings.redis_url)
        await redis_client.connect()

    app = create_app(
        database=database,
        redis_client=redis_client,
        rate_limit_enabled=settings.rate_limit_enabled,
        rate_limit_max_requests=settings.rate_limit_max_requests,
        rate_limit_window_seconds=settings.rate_limit_window_seconds,
        metrics_enabled=settings.metrics_enabled,
    )
    server = HttpServer(app, host=settings.http_host, port=settings.http_port)

    loop = asyncio.get_running_loop()

    async def shutdown() -> None:
        logger.info("shutting_down")
        await server.stop()
        if redis_client:
            await redis_client.close()
        await database.close()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(shutdown()),
        )

    await server.start()
    await server.wait_for_termination()

    raise SystemExit(0)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
