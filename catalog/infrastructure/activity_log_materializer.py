"""Activity Log Materializer — writes one durable ActivityLog row per audit event.

Invariants:
    - occurred_at (created_at) is stamped here, at materialization, not by the producer
    - One call == one row; duplicates under redelivery are written, not deduplicated
    - Persistence failure raises (DatabaseError via the session manager), which the
      worker turns into a retry
"""

from datetime import datetime, timezone

from catalog.infrastructure.product_store import SessionScope
from catalog.models.activity_log import ActivityLog
from catalog.schemas.activity import ActivityLogRecord, AuditEvent


class ActivityLogMaterializer:
    """AuditMaterializer backed by the activity_logs table."""

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    async def materialize(self, event: AuditEvent) -> ActivityLogRecord:
        row = ActivityLog(
            actor_id=event.actor_id,
            action=event.action.value,
            details=event.details,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session_scope() as db:
            db.add(row)
            await db.commit()
            return ActivityLogRecord.model_validate(row)
