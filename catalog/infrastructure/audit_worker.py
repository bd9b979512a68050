"""Audit Worker — consumer loop that materializes queued audit events.

Invariants:
    - At most policy.max_attempts attempts per job; attempts counted when a job is popped
    - After the n-th failed attempt the job waits base * 2^(n-1) ms, then retries
    - Exhausted jobs land in the failed bucket (never silently dropped)
    - On start, jobs orphaned in active by a crashed worker are re-queued
    - A failing iteration (job store outage) is logged and the loop keeps going;
      only cancellation stops it

Design Decisions:
    - process_next() is one complete step (promote, pop, materialize, settle) so
      tests drive the worker deterministically without background tasks
    - Wall clock injectable: backoff and retention tests move time explicitly
    - Any materializer exception is a retry trigger, the way a queue worker
      treats a thrown job
"""

import asyncio
import logging
import time
from collections.abc import Callable

from catalog.core.domain_types import JobState
from catalog.core.repository_protocols import AuditJobStore, AuditMaterializer
from catalog.core.retry_policy import (
    AuditQueuePolicy, FailureOutcome, outcome_after_failure, retry_ready_at,
)
from catalog.schemas.activity import AuditJob

logger = logging.getLogger(__name__)


class AuditWorker:
    """Pulls audit jobs from a job store and settles each one."""

    def __init__(
        self,
        job_store: AuditJobStore,
        materializer: AuditMaterializer,
        policy: AuditQueuePolicy | None = None,
        poll_timeout_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        self._job_store = job_store
        self._materializer = materializer
        self._policy = policy or AuditQueuePolicy()
        self._poll_timeout = poll_timeout_seconds
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Recover orphaned jobs, then run the loop as a background task."""
        recovered = await self._job_store.recover_active()
        if recovered:
            logger.warning(f"Re-queued {recovered} orphaned audit job(s)")
        self._task = asyncio.create_task(self.run())
        logger.info("Audit worker started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Audit worker stopped")

    async def run(self) -> None:
        while True:
            try:
                await self.process_next()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Audit worker iteration failed: {e}", exc_info=True)
                await asyncio.sleep(self._poll_timeout)

    async def process_next(self) -> JobState | None:
        """Run one step. Returns the state the popped job ended in, or None if idle."""
        await self._job_store.promote_due(self._clock())
        popped = await self._job_store.pop_waiting(self._poll_timeout)
        if popped is None:
            return None
        job, handle = popped
        job.attempts_made += 1
        logger.info(
            f"Processing activity log job {job.id}",
            extra={"job_id": job.id, "attempt": job.attempts_made},
        )
        try:
            record = await self._materializer.materialize(job.event)
        except Exception as e:
            return await self._settle_failure(job, handle, e)

        await self._job_store.ack_completed(job, handle, self._clock())
        logger.info(
            f"Activity log saved: {record.id}",
            extra={"job_id": job.id, "attempt": job.attempts_made},
        )
        return JobState.COMPLETED

    async def _settle_failure(
        self, job: AuditJob, handle, error: Exception,
    ) -> JobState:
        job.failed_reason = str(error)
        now = self._clock()
        outcome = outcome_after_failure(job.attempts_made, self._policy)
        if outcome == FailureOutcome.RETRY:
            await self._job_store.schedule_retry(
                job, handle, retry_ready_at(now, job.attempts_made, self._policy),
            )
            logger.warning(
                f"Error processing activity log job: {error} (retry scheduled)",
                extra={"job_id": job.id, "attempt": job.attempts_made},
            )
            return JobState.DELAYED

        await self._job_store.mark_failed(job, handle, now)
        logger.error(
            f"Activity log job failed after {job.attempts_made} attempts: {error}",
            extra={"job_id": job.id, "attempt": job.attempts_made},
        )
        return JobState.FAILED
