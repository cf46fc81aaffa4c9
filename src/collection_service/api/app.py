from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from collection_service.api.middleware import MetricsMiddleware, RateLimitMiddleware
from collection_service.api.routes import merchants, payouts, transactions
from collection_service.api.schemas import error_envelope
from collection_service.config import settings
from collection_service.domain.exceptions import (
    AuthError,
    CompensationFailure,
    ConflictError,
    DependencyError,
    DomainError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from collection_service.infrastructure.database import Database
from collection_service.infrastructure.rate_limiter import SlidingWindowRateLimiter
from collection_service.infrastructure.redis_client import RedisClient


logger = structlog.get_logger()


# First match wins
ERROR_STATUS: list[tuple[type[DomainError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (AuthError, 401),
    (ConflictError, 409),
    (InsufficientFundsError, 400),
    (DependencyError, 503),
    (CompensationFailure, 500),
]


def status_for_error(error: DomainError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, DomainError)
    status_code = status_for_error(exc)
    log = logger.bind(path=request.url.path, code=exc.code, status_code=status_code)
    if status_code >= 500:
        log.error("request_failed", error=str(exc))
    else:
        log.info("request_rejected", error=str(exc))
    return JSONResponse(status_code=status_code, content=error_envelope(exc.code, str(exc)))


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = str(first.get("msg", "")).removeprefix("Value error, ")
        message = f"{location}: {detail}" if location else detail
    logger.info("request_rejected", path=request.url.path, code=ValidationError.code, error=message)
    return JSONResponse(status_code=400, content=error_envelope(ValidationError.code, message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content=error_envelope("INTERNAL_ERROR", "Internal server error"))


def create_app(
    database: Database,
    redis_client: RedisClient | None = None,
    rate_limit_enabled: bool = False,
    rate_limit_max_requests: int = 100,
    rate_limit_window_seconds: int = 60,
    metrics_enabled: bool = True,
) -> FastAPI:
    """Build the HTTP application around an already constructed database handle."""
    app = FastAPI(title="Collection Service", version="0.1.0")
    app.state.database = database
    app.state.redis_client = redis_client

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    if rate_limit_enabled and redis_client is not None:
        rate_limiter = SlidingWindowRateLimiter(
            redis_client=redis_client.client,
            max_requests=rate_limit_max_requests,
            window_seconds=rate_limit_window_seconds,
        )
        app.add_middleware(RateLimitMiddleware, rate_limiter=rate_limiter)
        logger.info(
            "rate_limiting_enabled",
            max_requests=rate_limit_max_requests,
            window_seconds=rate_limit_window_seconds,
        )
    # Added last so it wraps the rate limiter and meters 429s too
    app.add_middleware(MetricsMiddleware)

    app.include_router(merchants.router)
    app.include_router(transactions.router)
    app.include_router(payouts.router)

    if metrics_enabled:

        @app.get("/metrics", response_class=PlainTextResponse, include_in_schema=False)
        async def metrics() -> PlainTextResponse:
            return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Readiness of the relational store and, when configured, Redis."""
        checks: dict[str, Any] = {}
        try:
            async with database.session() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except (SQLAlchemyError, OSError) as e:
            logger.warning("database_health_check_failed", error=str(e))
            checks["database"] = "unavailable"
        if redis_client is not None:
            checks["redis"] = "ok" if await redis_client.ping() else "unavailable"

        healthy = all(value == "ok" for value in checks.values())
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "healthy" if healthy else "degraded", "checks": checks},
        )

    return app


def create_default_app() -> FastAPI:
    """Factory for `uvicorn --factory`; Redis is left out since it needs an async connect."""
    return create_app(Database(settings.database_url), metrics_enabled=settings.metrics_enabled)
