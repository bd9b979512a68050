"""Boundary Protocols — contracts between the product service and its four leaves.

Invariants:
    - The service depends only on these Protocols; leaves never call each other
    - ProductStore errors propagate (DatabaseError); nothing else may raise to the service
    - ProductCache, ProductNotifier: every failure swallowed and logged inside the leaf
    - AuditQueue.enqueue returns once the job is durably queued, before materialization

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async where implementations do IO; broadcast is sync because it only hands
      events to in-process listener buffers
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from catalog.schemas.activity import ActivityLogRecord, AuditEvent, AuditJob
    from catalog.schemas.product import ProductRecord


class ProductStore(Protocol):
    """System of record for products — implemented by infrastructure."""
    async def insert(self, fields: Mapping[str, Any]) -> "ProductRecord": ...
    async def get_by_id(self, product_id: str) -> "ProductRecord | None": ...
    async def list_all(self) -> list["ProductRecord"]: ...
    async def replace(self, record: "ProductRecord") -> "ProductRecord": ...
    async def delete(self, product_id: str) -> bool: ...


class ProductCache(Protocol):
    """Best-effort JSON cache with per-key TTL."""
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None: ...
    async def delete(self, key: str) -> None: ...


class ProductNotifier(Protocol):
    """Fire-and-forget broadcast to currently attached listeners."""
    def broadcast(self, event_name: str, payload: Mapping[str, Any]) -> None: ...


class AuditQueue(Protocol):
    """Producer side of the durable audit queue."""
    async def enqueue(self, event: "AuditEvent") -> str | None: ...


class AuditMaterializer(Protocol):
    """Consumer side — writes one durable audit row per event, raises on failure."""
    async def materialize(self, event: "AuditEvent") -> "ActivityLogRecord": ...


class AuditJobStore(Protocol):
    """Storage primitives the audit worker drives (Redis or in-memory)."""
    async def push_waiting(self, job: "AuditJob") -> None: ...
    async def pop_waiting(self, timeout_seconds: float) -> "tuple[AuditJob, Any] | None": ...
    async def promote_due(self, now: float) -> int: ...
    async def recover_active(self) -> int: ...
    async def ack_completed(self, job: "AuditJob", handle: Any, now: float) -> None: ...
    async def schedule_retry(
        self, job: "AuditJob", handle: Any, ready_at: float,
    ) -> None: ...
    async def mark_failed(self, job: "AuditJob", handle: Any, now: float) -> None: ...
    async def counts(self) -> dict[str, int]: ...
