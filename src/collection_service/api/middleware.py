import time

import structlog
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp
from ulid import ULID

from collection_service.api.dependencies import PUBLIC_KEY_HEADER
from collection_service.api.schemas import error_envelope
from collection_service.infrastructure.metrics import (
    HTTP_REQUEST_DURATION,
    HTTP_REQUESTS_TOTAL,
    RATE_LIMIT_EXCEEDED_TOTAL,
)
from collection_service.infrastructure.rate_limiter import SlidingWindowRateLimiter
from collection_service.logging import bind_request_context


logger = structlog.get_logger()

UNMETERED_PATHS = ("/metrics", "/health")


def _route_path(request: Request) -> str:
    """Templated route path, so path parameters do not explode label cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collects Prometheus metrics and binds a request id for every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or str(ULID())
        bind_request_context(request_id=request_id)

        start_time = time.perf_counter()
        status_code = "500"
        try:
            response = await call_next(request)
            status_code = str(response.status_code)
            response.headers["x-request-id"] = request_id
            return response
        finally:
            if request.url.path not in UNMETERED_PATHS:
                duration = time.perf_counter() - start_time
                path = _route_path(request)
                HTTP_REQUEST_DURATION.labels(
                    method=request.method, path=path, status_code=status_code
                ).observe(duration)
                HTTP_REQUESTS_TOTAL.labels(method=request.method, path=path, status_code=status_code).inc()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests over the sliding-window budget of their caller with 429."""

    def __init__(self, app: ASGIApp, rate_limiter: SlidingWindowRateLimiter) -> None:
        super().__init__(app)
        self._rate_limiter = rate_limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in UNMETERED_PATHS:
            return await call_next(request)

        identifier_type, identifier = self._get_identifier(request)
        try:
            decision = await self._rate_limiter.check(identifier)
        except RedisError as e:
            logger.warning("rate_limiter_unavailable", identifier=identifier, error=str(e))
            return await call_next(request)

        if not decision.allowed:
            RATE_LIMIT_EXCEEDED_TOTAL.labels(identifier_type=identifier_type).inc()
            logger.warning(
                "rate_limit_exceeded",
                path=request.url.path,
                identifier=identifier,
            )
            return JSONResponse(
                status_code=429,
                content=error_envelope(
                    "RATE_LIMITED", f"Rate limit exceeded. Retry after {decision.retry_after}s"
                ),
                headers={"Retry-After": str(decision.retry_after)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response

    def _get_identifier(self, request: Request) -> tuple[str, str]:
        """Key by merchant public key, then forwarded client IP, then peer address."""
        if public_key := request.headers.get(PUBLIC_KEY_HEADER):
            return "merchant", f"merchant:{public_key}"

        if forwarded := request.headers.get("x-forwarded-for"):
            return "ip", f"ip:{forwarded.split(',')[0].strip()}"

        host = request.client.host if request.client else "unknown"
        return "ip", f"ip:{host}"
