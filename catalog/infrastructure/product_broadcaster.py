"""Product Broadcaster — in-process fan-out of change events to attached listeners.

Invariants:
    - broadcast() is synchronous and non-blocking: it drops the event into each
      listener's bounded buffer and returns without waiting for delivery
    - Only listeners attached at emission time receive an event; nothing is
      queued for future listeners, nothing is retried, nothing is persisted
    - A full listener buffer loses that event for that listener only (logged)
    - attach/detach are logged; they have no other side effects

Design Decisions:
    - asyncio.Queue per listener: the SSE route drains its own queue, so a slow
      client can never stall the producer or other listeners
    - Listener ids are uuid4 text, used only for log correlation
"""

import asyncio
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from catalog.core.errors import TransientInfrastructureError
from catalog.schemas.notification import NotificationEvent

logger = logging.getLogger(__name__)


class Listener:
    """One connected client: id plus its bounded event buffer."""

    def __init__(self, buffer_size: int):
        self.id = str(uuid.uuid4())
        self.queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(
            maxsize=buffer_size,
        )

    async def next_event(self) -> NotificationEvent:
        return await self.queue.get()


class ProductBroadcaster:
    """ProductNotifier that hands events to every currently attached listener."""

    def __init__(self, buffer_size: int = 100):
        self._buffer_size = buffer_size
        self._listeners: dict[str, Listener] = {}

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def attach(self) -> Listener:
        listener = Listener(self._buffer_size)
        self._listeners[listener.id] = listener
        logger.info(
            f"Listener connected: {listener.id}",
            extra={"listener_count": self.listener_count},
        )
        return listener

    def detach(self, listener: Listener) -> None:
        if self._listeners.pop(listener.id, None) is not None:
            logger.info(
                f"Listener disconnected: {listener.id}",
                extra={"listener_count": self.listener_count},
            )

    def broadcast(self, event_name: str, payload: Mapping[str, Any]) -> None:
        event = NotificationEvent(event=event_name, data=dict(payload))
        for listener in list(self._listeners.values()):
            try:
                listener.queue.put_nowait(event)
            except asyncio.QueueFull:
                err = TransientInfrastructureError("notifier", "deliver")
                logger.warning(
                    f"Listener {listener.id} buffer full, event dropped",
                    extra={"event_name": event_name, "error_code": err.code},
                )
        logger.info(
            f"Emitting {event_name} event: {payload.get('id')}",
            extra={
                "event_name": event_name,
                "product_id": payload.get("id"),
                "listener_count": self.listener_count,
            },
        )
