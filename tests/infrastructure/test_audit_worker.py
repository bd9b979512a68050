"""Audit Worker — materialization, retry with backoff, and terminal failure.

Tests:
    - A successful job is materialized once and completed
    - Failures retry after 2 s then 4 s, then land in failed after 3 attempts
    - A job recovers on a later attempt
    - Orphaned active jobs re-run after start()
    - The background loop processes jobs until stopped
"""

import asyncio

import pytest

from catalog.core.domain_types import AuditAction, JobState
from catalog.core.retry_policy import AuditQueuePolicy
from catalog.infrastructure.audit_job_store import InMemoryAuditJobStore
from catalog.infrastructure.audit_worker import AuditWorker
from catalog.schemas.activity import ActivityLogRecord, AuditEvent, AuditJob


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class FlakyMaterializer:
    """Fails the first `failures` calls, then succeeds."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls: list[AuditEvent] = []

    async def materialize(self, event: AuditEvent) -> ActivityLogRecord:
        self.calls.append(event)
        if len(self.calls) <= self.failures:
            raise RuntimeError("database unavailable")
        return ActivityLogRecord(
            id=f"log-{len(self.calls)}",
            actor_id=event.actor_id,
            action=event.action.value,
            details=event.details,
            created_at="2026-01-01T00:00:00Z",
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryAuditJobStore()


def _worker(store, materializer, clock) -> AuditWorker:
    return AuditWorker(
        store, materializer, AuditQueuePolicy(), poll_timeout_seconds=0.01, clock=clock,
    )


async def _enqueue(store) -> AuditJob:
    job = AuditJob(
        event=AuditEvent(actor_id="u1", action=AuditAction.PRODUCT_CREATED),
        enqueued_at=0.0,
    )
    await store.push_waiting(job)
    return job


async def test_idle_returns_none(store, clock):
    assert await _worker(store, FlakyMaterializer(), clock).process_next() is None


async def test_success_completes_job(store, clock):
    materializer = FlakyMaterializer()
    await _enqueue(store)

    assert await _worker(store, materializer, clock).process_next() == JobState.COMPLETED
    assert len(materializer.calls) == 1
    completed = await store.completed_jobs()
    assert completed[0].attempts_made == 1


async def test_failures_back_off_then_fail(store, clock):
    materializer = FlakyMaterializer(failures=10)
    worker = _worker(store, materializer, clock)
    await _enqueue(store)

    assert await worker.process_next() == JobState.DELAYED

    clock.now += 1
    assert await worker.process_next() is None
    clock.now += 1
    assert await worker.process_next() == JobState.DELAYED

    clock.now += 3
    assert await worker.process_next() is None
    clock.now += 1
    assert await worker.process_next() == JobState.FAILED

    assert len(materializer.calls) == 3
    failed = await store.failed_jobs()
    assert failed[0].attempts_made == 3
    assert failed[0].failed_reason == "database unavailable"
    assert (await store.counts())["delayed"] == 0


async def test_recovers_on_second_attempt(store, clock):
    materializer = FlakyMaterializer(failures=1)
    worker = _worker(store, materializer, clock)
    await _enqueue(store)

    assert await worker.process_next() == JobState.DELAYED
    clock.now += 2
    assert await worker.process_next() == JobState.COMPLETED
    assert await store.failed_jobs() == []


async def test_start_recovers_orphans_and_runs_loop(store, clock):
    materializer = FlakyMaterializer()
    await _enqueue(store)
    await store.pop_waiting(0.01)  # crashed worker left it active

    worker = _worker(store, materializer, clock)
    await worker.start()
    try:
        for _ in range(100):
            if materializer.calls:
                break
            await asyncio.sleep(0.01)
        assert worker.running
    finally:
        await worker.stop()

    assert len(materializer.calls) == 1
    assert not worker.running


async def test_loop_survives_job_store_errors(clock):
    store = InMemoryAuditJobStore()
    calls = 0
    original = store.promote_due

    async def flaky_promote(now):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise ConnectionError("redis down")
        return await original(now)

    store.promote_due = flaky_promote
    materializer = FlakyMaterializer()
    await _enqueue(store)
    worker = _worker(store, materializer, clock)
    await worker.start()
    try:
        for _ in range(100):
            if materializer.calls:
                break
            await asyncio.sleep(0.01)
    finally:
        await worker.stop()
    assert len(materializer.calls) == 1
