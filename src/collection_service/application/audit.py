import structlog

from collection_service.domain.models import AuditLogEntry
from collection_service.infrastructure.database import Database
from collection_service.infrastructure.metrics import AUDIT_WRITE_FAILURES_TOTAL
from collection_service.infrastructure.repositories import AuditLogRepository


logger = structlog.get_logger()


class AuditRecorder:
    """Best-effort sink for failed mutation attempts.

    Entries are written in their own session so they survive the rollback of
    the operation they describe. A failed write is logged and counted, never
    raised: it must not mask the outcome of the primary operation.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def record(self, entry: AuditLogEntry) -> None:
        try:
            async with self._database.session() as session:
                await AuditLogRepository(session).add(entry)
                await session.commit()
        except Exception as e:
            AUDIT_WRITE_FAILURES_TOTAL.labels(event_type=entry.event_type).inc()
            logger.error(
                "audit_write_failed",
                event_type=entry.event_type,
                db_table=entry.db_table,
                table_id=entry.table_id,
                error=str(e),
            )
            return

        logger.info(
            "audit_recorded",
            event_type=entry.event_type,
            db_table=entry.db_table,
            table_id=entry.table_id,
        )
