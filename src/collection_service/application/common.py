from dataclasses import dataclass
from typing import Any

import structlog

from collection_service.application.audit import AuditRecorder
from collection_service.application.unit_of_work import UnitOfWork
from collection_service.domain.exceptions import CompensationFailure, ValidationError
from collection_service.domain.models import AuditLogEntry
from collection_service.infrastructure.metrics import COMPENSATIONS_TOTAL


@dataclass
class Page[T]:
    items: list[T]
    count: int
    limit: int
    offset: int


def check_page(limit: int, offset: int) -> None:
    if limit <= 0 or offset < 0:
        raise ValidationError("Page limit must be positive and offset must not be negative")


async def compensate(
    uow: UnitOfWork,
    audit: AuditRecorder,
    log: structlog.stdlib.BoundLogger,
    *,
    operation: str,
    db_table: str,
    table_id: str,
    attempted_changes: dict[str, Any],
    error: Exception,
    merchant_id: str,
) -> None:
    """Undo everything the failed operation wrote, then audit the failure.

    Raises CompensationFailure when the undo itself fails.
    """
    try:
        await uow.rollback()
    except Exception as rollback_error:
        COMPENSATIONS_TOTAL.labels(operation=operation, outcome="failed").inc()
        log.error(
            "compensation_failed",
            operation=operation,
            error=str(error),
            rollback_error=str(rollback_error),
        )
        await audit.record(
            AuditLogEntry(
                event_type=f"{operation}_compensation_failed",
                db_table=db_table,
                table_id=table_id,
                attempted_changes=attempted_changes,
                error_message=f"{error}; rollback: {rollback_error}",
                user_type="merchant",
                user_id=merchant_id,
            )
        )
        raise CompensationFailure(operation, error, rollback_error) from rollback_error

    COMPENSATIONS_TOTAL.labels(operation=operation, outcome="rolled_back").inc()
    log.warning("operation_rolled_back", operation=operation, error=str(error))
    await audit.record(
        AuditLogEntry(
            event_type=f"{operation}_failed",
            db_table=db_table,
            table_id=table_id,
            attempted_changes=attempted_changes,
            error_message=str(error),
            user_type="merchant",
            user_id=merchant_id,
        )
    )
