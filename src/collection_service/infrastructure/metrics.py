import time
from collections.abc import Awaitable, Callable
from functools import wraps

from prometheus_client import Counter, Histogram


TRANSACTIONS_INITIALIZED_TOTAL = Counter(
    "transactions_initialized_total",
    "Total number of initialized transactions",
    ["currency"],
)

TRANSACTIONS_CAPTURED_TOTAL = Counter(
    "transactions_captured_total",
    "Total number of capture attempts",
    ["tx_type", "outcome"],
)

CARD_SETTLEMENTS_TOTAL = Counter(
    "card_settlements_total",
    "Total number of card settlement attempts",
    ["outcome"],
)

PAYOUTS_TOTAL = Counter(
    "payouts_total",
    "Total number of payout requests",
    ["currency", "outcome"],
)

COMPENSATIONS_TOTAL = Counter(
    "compensations_total",
    "Rollbacks performed after a partially applied operation",
    ["operation", "outcome"],
)

AUDIT_WRITE_FAILURES_TOTAL = Counter(
    "audit_write_failures_total",
    "Audit log entries that could not be written",
    ["event_type"],
)

RATE_LIMIT_EXCEEDED_TOTAL = Counter(
    "rate_limit_exceeded_total",
    "Total number of rate limited requests",
    ["identifier_type"],
)

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    ["method", "path", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

LIFECYCLE_DURATION_SECONDS = Histogram(
    "lifecycle_duration_seconds",
    "Duration of transaction and payout lifecycle operations",
    ["operation"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


def track_duration[**P, R](
    operation: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                LIFECYCLE_DURATION_SECONDS.labels(operation=operation).observe(time.perf_counter() - start)

        return wrapper

    return decorator
