import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from collection_service.domain.models import AuditLogEntry
from collection_service.infrastructure.database import remote_call


class AuditLogRepository:
    """Append-only sink. Entries are never read back by the service."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @remote_call("audit_log_insert")
    async def add(self, entry: AuditLogEntry) -> None:
        await self._session.execute(
            text("""
                INSERT INTO audit_logs
                    (id, event_type, db_table, table_id, status, attempted_changes,
                     error_message, context, user_type, user_id, created_at)
                VALUES
                    (:id, :event_type, :db_table, :table_id, :status,
                     CAST(:attempted_changes AS JSONB), :error_message,
                     CAST(:context AS JSONB), :user_type, :user_id, :created_at)
            """),
            {
                "id": entry.id,
                "event_type": entry.event_type,
                "db_table": entry.db_table,
                "table_id": entry.table_id,
                "status": entry.status,
                "attempted_changes": json.dumps(entry.attempted_changes, default=str)
                if entry.attempted_changes is not None
                else None,
                "error_message": entry.error_message,
                "context": json.dumps(entry.context, default=str) if entry.context is not None else None,
                "user_type": entry.user_type,
                "user_id": entry.user_id,
                "created_at": entry.created_at,
            },
        )
