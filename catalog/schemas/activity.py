"""Activity Schemas — audit events, queued audit jobs, and materialized activity rows.

Invariants:
    - AuditEvent carries no timestamp: occurred_at is set by the consumer when the
      row is materialized, never by the producer
    - AuditJob is the JSON unit stored in the durable queue; its id is unique per
      enqueue, so duplicate deliveries of one job share an id
    - actor_id is optional (absent for unauthenticated actions)

Design Decisions:
    - Pydantic JSON round-trip for queue payloads (model_dump_json / model_validate_json),
      same as cache payloads, no custom encoders
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.core.domain_types import AuditAction


class RequestSource(BaseModel):
    """Origin metadata captured by the API adapter."""
    ip_address: str | None = None
    user_agent: str | None = None


class AuditEvent(BaseModel):
    """Activity to be written to the audit trail."""
    actor_id: str | None = None
    action: AuditAction
    details: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class AuditJob(BaseModel):
    """Queue envelope around an AuditEvent."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event: AuditEvent
    attempts_made: int = 0
    enqueued_at: float
    finished_at: float | None = None
    failed_reason: str | None = None

    def encode(self) -> str:
        return self.model_dump_json()

    @classmethod
    def decode(cls, raw: str | bytes) -> "AuditJob":
        return cls.model_validate_json(raw)


class ActivityLogRecord(BaseModel):
    """Durable audit row as written by the consumer."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    actor_id: str | None = None
    action: str
    details: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
