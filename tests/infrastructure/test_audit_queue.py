"""Durable Audit Queue — producer side.

Tests:
    - enqueue stores a waiting job and returns its id
    - a job store outage is swallowed and logged
"""

from unittest.mock import AsyncMock

from catalog.core.domain_types import AuditAction
from catalog.infrastructure.audit_job_store import InMemoryAuditJobStore
from catalog.infrastructure.audit_queue import DurableAuditQueue
from catalog.schemas.activity import AuditEvent

EVENT = AuditEvent(action=AuditAction.PRODUCT_CREATED, details="Product created: X (1)")


async def test_enqueue_pushes_waiting_job():
    store = InMemoryAuditJobStore()
    queue = DurableAuditQueue(store, clock=lambda: 42.0)

    job_id = await queue.enqueue(EVENT)

    job, _ = await store.pop_waiting(0.01)
    assert job.id == job_id
    assert job.event == EVENT
    assert job.enqueued_at == 42.0
    assert job.attempts_made == 0


async def test_each_enqueue_gets_new_id():
    queue = DurableAuditQueue(InMemoryAuditJobStore())
    assert await queue.enqueue(EVENT) != await queue.enqueue(EVENT)


async def test_outage_is_swallowed(caplog):
    store = AsyncMock()
    store.push_waiting = AsyncMock(side_effect=ConnectionError("redis down"))

    assert await DurableAuditQueue(store).enqueue(EVENT) is None
    assert "audit_queue enqueue degraded" in caplog.text
