"""Notification Schema — ephemeral change event pushed to connected listeners."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class NotificationEvent(BaseModel):
    """Broadcast envelope: event name, affected product, emission time."""
    event: str
    data: dict
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_sse(self) -> str:
        """Format as one Server-Sent Events frame."""
        return f"event: {self.event}\ndata: {self.model_dump_json()}\n\n"
