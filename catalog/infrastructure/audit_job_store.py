"""Audit Job Stores — durable (Redis) and in-memory storage for queued audit jobs.

Invariants:
    - A job is in exactly one place: waiting, active, delayed, completed or failed
    - pop_waiting moves a job to active atomically (BLMOVE); it leaves active only
      through ack_completed, schedule_retry, mark_failed or recover_active
    - Jobs still active when a worker starts are returned to waiting
      (at-least-once: a crash mid-processing means the job runs again)
    - Completed bucket pruned to the retention window AND the retention count;
      failed bucket pruned to its retention window
    - FIFO: producers push on the left, the worker pops from the right

Design Decisions:
    - Plain Redis lists + sorted sets over a task framework: the retention rules
      (1 h / 1000 completed, 24 h failed) map directly onto ZREMRANGEBYSCORE /
      ZREMRANGEBYRANK, and the worker stays on the same asyncio loop as the app
    - The pop handle is the exact raw payload in the active list, so LREM removes
      that entry even though the job object was mutated while processing
    - Multi-step transitions run in a MULTI/EXEC pipeline
"""

import asyncio
import logging
from collections import deque

import redis.asyncio as redis
from pydantic import ValidationError

from catalog.core.retry_policy import (
    AuditQueuePolicy, completed_cutoff, failed_cutoff, prune_completed, prune_failed,
)
from catalog.schemas.activity import AuditJob

logger = logging.getLogger(__name__)


class RedisAuditJobStore:
    """AuditJobStore over Redis lists and sorted sets."""

    def __init__(
        self,
        client: redis.Redis,
        queue_name: str = "activity-log",
        policy: AuditQueuePolicy | None = None,
    ):
        self._client = client
        self._policy = policy or AuditQueuePolicy()
        self._wait = f"{queue_name}:wait"
        self._active = f"{queue_name}:active"
        self._delayed = f"{queue_name}:delayed"
        self._completed = f"{queue_name}:completed"
        self._failed = f"{queue_name}:failed"

    @classmethod
    def from_url(
        cls, url: str, queue_name: str, policy: AuditQueuePolicy,
    ) -> "RedisAuditJobStore":
        return cls(redis.from_url(url, decode_responses=True), queue_name, policy)

    async def push_waiting(self, job: AuditJob) -> None:
        await self._client.lpush(self._wait, job.encode())

    async def pop_waiting(self, timeout_seconds: float) -> tuple[AuditJob, str] | None:
        raw = await self._client.blmove(
            self._wait, self._active, timeout_seconds, "RIGHT", "LEFT",
        )
        if raw is None:
            return None
        try:
            return AuditJob.decode(raw), raw
        except ValidationError as e:
            logger.error(f"Discarding undecodable audit job: {e}")
            await self._client.lrem(self._active, 1, raw)
            return None

    async def promote_due(self, now: float) -> int:
        due = await self._client.zrangebyscore(self._delayed, "-inf", now)
        promoted = 0
        for raw in due:
            # zrem guards against two workers promoting the same job
            if await self._client.zrem(self._delayed, raw):
                await self._client.lpush(self._wait, raw)
                promoted += 1
        return promoted

    async def recover_active(self) -> int:
        recovered = 0
        while await self._client.lmove(self._active, self._wait, "RIGHT", "RIGHT"):
            recovered += 1
        return recovered

    async def ack_completed(self, job: AuditJob, handle: str, now: float) -> None:
        job.finished_at = now
        keep = self._policy.completed_retention_count
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.lrem(self._active, 1, handle)
            pipe.zadd(self._completed, {job.encode(): now})
            pipe.zremrangebyscore(
                self._completed, "-inf", f"({completed_cutoff(now, self._policy)}",
            )
            pipe.zremrangebyrank(self._completed, 0, -(keep + 1))
            await pipe.execute()

    async def schedule_retry(self, job: AuditJob, handle: str, ready_at: float) -> None:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.lrem(self._active, 1, handle)
            pipe.zadd(self._delayed, {job.encode(): ready_at})
            await pipe.execute()

    async def mark_failed(self, job: AuditJob, handle: str, now: float) -> None:
        job.finished_at = now
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.lrem(self._active, 1, handle)
            pipe.zadd(self._failed, {job.encode(): now})
            pipe.zremrangebyscore(
                self._failed, "-inf", f"({failed_cutoff(now, self._policy)}",
            )
            await pipe.execute()

    async def failed_jobs(self) -> list[AuditJob]:
        """Failed bucket, oldest first — kept for inspection until retention expires."""
        return [AuditJob.decode(raw) for raw in await self._client.zrange(self._failed, 0, -1)]

    async def counts(self) -> dict[str, int]:
        return {
            "waiting": await self._client.llen(self._wait),
            "active": await self._client.llen(self._active),
            "delayed": await self._client.zcard(self._delayed),
            "completed": await self._client.zcard(self._completed),
            "failed": await self._client.zcard(self._failed),
        }

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryAuditJobStore:
    """AuditJobStore for development and tests — same transitions, no durability."""

    def __init__(self, policy: AuditQueuePolicy | None = None):
        self._policy = policy or AuditQueuePolicy()
        self._waiting: deque[AuditJob] = deque()
        self._active: dict[str, AuditJob] = {}
        self._delayed: list[tuple[float, AuditJob]] = []
        self._completed: list[tuple[float, AuditJob]] = []
        self._failed: list[tuple[float, AuditJob]] = []
        self._available = asyncio.Event()

    async def push_waiting(self, job: AuditJob) -> None:
        self._waiting.append(job)
        self._available.set()

    async def pop_waiting(self, timeout_seconds: float) -> tuple[AuditJob, str] | None:
        if not self._waiting:
            self._available.clear()
            try:
                await asyncio.wait_for(self._available.wait(), timeout_seconds)
            except asyncio.TimeoutError:
                return None
            if not self._waiting:
                return None
        job = self._waiting.popleft()
        self._active[job.id] = job
        return job, job.id

    async def promote_due(self, now: float) -> int:
        due = [job for ready_at, job in self._delayed if ready_at <= now]
        self._delayed = [(r, j) for r, j in self._delayed if r > now]
        for job in due:
            await self.push_waiting(job)
        return len(due)

    async def recover_active(self) -> int:
        recovered = list(self._active.values())
        self._active.clear()
        for job in recovered:
            await self.push_waiting(job)
        return len(recovered)

    async def ack_completed(self, job: AuditJob, handle: str, now: float) -> None:
        job.finished_at = now
        self._active.pop(handle, None)
        self._completed = prune_completed(
            self._completed + [(now, job)], now, self._policy,
        )

    async def schedule_retry(self, job: AuditJob, handle: str, ready_at: float) -> None:
        self._active.pop(handle, None)
        self._delayed.append((ready_at, job))

    async def mark_failed(self, job: AuditJob, handle: str, now: float) -> None:
        job.finished_at = now
        self._active.pop(handle, None)
        self._failed = prune_failed(self._failed + [(now, job)], now, self._policy)

    async def failed_jobs(self) -> list[AuditJob]:
        return [job for _, job in self._failed]

    async def completed_jobs(self) -> list[AuditJob]:
        return [job for _, job in self._completed]

    async def counts(self) -> dict[str, int]:
        return {
            "waiting": len(self._waiting),
            "active": len(self._active),
            "delayed": len(self._delayed),
            "completed": len(self._completed),
            "failed": len(self._failed),
        }

    async def close(self) -> None:
        return None
