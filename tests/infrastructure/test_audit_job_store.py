"""Audit Job Stores — job transitions for the in-memory and Redis backends.

Tests:
    - FIFO pop moves a job to active; an empty queue times out to None
    - Delayed jobs become waiting only once due
    - Orphaned active jobs are recovered to waiting
    - Completed/failed buckets apply retention
    - Redis store issues BLMOVE and a transactional pipeline per transition
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from catalog.core.domain_types import AuditAction
from catalog.core.retry_policy import AuditQueuePolicy
from catalog.infrastructure.audit_job_store import (
    InMemoryAuditJobStore, RedisAuditJobStore,
)
from catalog.schemas.activity import AuditEvent, AuditJob


def _job(details: str = "Product created: Laptop (1)") -> AuditJob:
    return AuditJob(
        event=AuditEvent(action=AuditAction.PRODUCT_CREATED, details=details),
        enqueued_at=0.0,
    )


# ─── In-memory ──────────────────────────────────────────────────

async def test_pop_is_fifo_and_tracks_active():
    store = InMemoryAuditJobStore()
    first, second = _job("a"), _job("b")
    await store.push_waiting(first)
    await store.push_waiting(second)

    job, handle = await store.pop_waiting(0.01)
    assert job.id == first.id
    assert handle == first.id
    assert (await store.counts())["active"] == 1
    assert (await store.counts())["waiting"] == 1


async def test_pop_empty_times_out():
    assert await InMemoryAuditJobStore().pop_waiting(0.01) is None


async def test_delayed_job_promoted_only_when_due():
    store = InMemoryAuditJobStore()
    await store.push_waiting(_job())
    job, handle = await store.pop_waiting(0.01)
    await store.schedule_retry(job, handle, ready_at=102.0)

    assert await store.promote_due(101.9) == 0
    assert (await store.counts())["delayed"] == 1
    assert await store.promote_due(102.0) == 1
    assert (await store.counts())["waiting"] == 1


async def test_recover_active_requeues_orphans():
    store = InMemoryAuditJobStore()
    await store.push_waiting(_job())
    await store.pop_waiting(0.01)

    assert await store.recover_active() == 1
    counts = await store.counts()
    assert counts["active"] == 0
    assert counts["waiting"] == 1


async def test_completed_bucket_capped_by_count():
    store = InMemoryAuditJobStore(AuditQueuePolicy(completed_retention_count=2))
    for i in range(3):
        await store.push_waiting(_job(str(i)))
        job, handle = await store.pop_waiting(0.01)
        await store.ack_completed(job, handle, now=float(i))

    kept = await store.completed_jobs()
    assert [j.event.details for j in kept] == ["1", "2"]
    assert all(j.finished_at is not None for j in kept)


async def test_completed_bucket_capped_by_age():
    store = InMemoryAuditJobStore()
    await store.push_waiting(_job("old"))
    job, handle = await store.pop_waiting(0.01)
    await store.ack_completed(job, handle, now=0.0)
    await store.push_waiting(_job("new"))
    job, handle = await store.pop_waiting(0.01)
    await store.ack_completed(job, handle, now=3601.0)

    assert [j.event.details for j in await store.completed_jobs()] == ["new"]


async def test_failed_bucket_expires_after_a_day():
    store = InMemoryAuditJobStore()
    await store.push_waiting(_job("old"))
    job, handle = await store.pop_waiting(0.01)
    await store.mark_failed(job, handle, now=0.0)
    assert len(await store.failed_jobs()) == 1

    await store.push_waiting(_job("new"))
    job, handle = await store.pop_waiting(0.01)
    await store.mark_failed(job, handle, now=86_401.0)
    assert [j.event.details for j in await store.failed_jobs()] == ["new"]


# ─── Redis ──────────────────────────────────────────────────────

@pytest.fixture
def pipe():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    return pipe


@pytest.fixture
def mock_redis(pipe):
    redis = AsyncMock()
    redis.pipeline = MagicMock(return_value=pipe)
    return redis


async def test_redis_push_uses_wait_list(mock_redis):
    store = RedisAuditJobStore(mock_redis, "activity-log")
    job = _job()
    await store.push_waiting(job)
    mock_redis.lpush.assert_awaited_once_with("activity-log:wait", job.encode())


async def test_redis_pop_moves_to_active(mock_redis):
    job = _job()
    mock_redis.blmove.return_value = job.encode()
    store = RedisAuditJobStore(mock_redis, "activity-log")

    popped, handle = await store.pop_waiting(1.0)

    mock_redis.blmove.assert_awaited_once_with(
        "activity-log:wait", "activity-log:active", 1.0, "RIGHT", "LEFT",
    )
    assert popped.id == job.id
    assert handle == job.encode()


async def test_redis_pop_timeout(mock_redis):
    mock_redis.blmove.return_value = None
    assert await RedisAuditJobStore(mock_redis).pop_waiting(1.0) is None


async def test_redis_pop_discards_garbage(mock_redis):
    mock_redis.blmove.return_value = "not-json"
    store = RedisAuditJobStore(mock_redis, "activity-log")
    assert await store.pop_waiting(1.0) is None
    mock_redis.lrem.assert_awaited_once_with("activity-log:active", 1, "not-json")


async def test_redis_ack_prunes_completed(mock_redis, pipe):
    store = RedisAuditJobStore(mock_redis, "activity-log")
    job = _job()
    await store.ack_completed(job, "raw", now=5000.0)

    mock_redis.pipeline.assert_called_once_with(transaction=True)
    pipe.lrem.assert_called_once_with("activity-log:active", 1, "raw")
    pipe.zremrangebyscore.assert_called_once_with(
        "activity-log:completed", "-inf", "(1400.0",
    )
    pipe.zremrangebyrank.assert_called_once_with("activity-log:completed", 0, -1001)
    pipe.execute.assert_awaited_once()
    assert job.finished_at == 5000.0


async def test_redis_retry_goes_to_delayed(mock_redis, pipe):
    store = RedisAuditJobStore(mock_redis, "activity-log")
    job = _job()
    await store.schedule_retry(job, "raw", ready_at=12.0)
    pipe.zadd.assert_called_once_with("activity-log:delayed", {job.encode(): 12.0})


async def test_redis_promote_due(mock_redis):
    mock_redis.zrangebyscore.return_value = ["a", "b"]
    mock_redis.zrem.side_effect = [1, 0]
    store = RedisAuditJobStore(mock_redis, "activity-log")

    assert await store.promote_due(10.0) == 1
    mock_redis.lpush.assert_awaited_once_with("activity-log:wait", "a")


async def test_redis_recover_active(mock_redis):
    mock_redis.lmove.side_effect = ["a", "b", None]
    assert await RedisAuditJobStore(mock_redis).recover_active() == 2
