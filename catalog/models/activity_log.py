"""ActivityLog ORM — durable audit row written by the audit queue consumer.

Invariants:
    - One row per materialized AuditEvent; rows are never updated or deleted
    - created_at is the occurrence time, stamped by the consumer at write time
    - actor_id nullable: unauthenticated actions are still recorded

Design Decisions:
    - Logging table, not enforcement: no business logic reads it back
    - No uniqueness on (actor, action, details): at-least-once delivery may write
      duplicates, which are tolerated rather than deduplicated
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from catalog.db.base import Base


class ActivityLog(Base):
    """Activity log entry — observability for user and product actions."""
    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    actor_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True,
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
