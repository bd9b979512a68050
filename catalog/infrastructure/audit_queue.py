"""Audit Queue — producer side of the durable activity-log queue.

Invariants:
    - enqueue returns as soon as the job is in the job store, before any consumer runs
    - enqueue never raises: a queue outage loses that audit event and is logged
      (audit is best-effort observability, not a ledger of record)
    - Each enqueue creates a new job id; duplicate deliveries of one job share it

Design Decisions:
    - Producer holds no policy: retry/backoff/retention live with the worker and
      the job store, so producers on other processes need only a job store
"""

import logging
import time
from collections.abc import Callable

from catalog.core.errors import TransientInfrastructureError
from catalog.core.repository_protocols import AuditJobStore
from catalog.schemas.activity import AuditEvent, AuditJob

logger = logging.getLogger(__name__)


class DurableAuditQueue:
    """AuditQueue that writes AuditJobs into an AuditJobStore."""

    def __init__(
        self, job_store: AuditJobStore, clock: Callable[[], float] = time.time,
    ):
        self._job_store = job_store
        self._clock = clock

    async def enqueue(self, event: AuditEvent) -> str | None:
        job = AuditJob(event=event, enqueued_at=self._clock())
        try:
            await self._job_store.push_waiting(job)
        except Exception as e:
            err = TransientInfrastructureError("audit_queue", "enqueue", e)
            logger.error(
                err.message,
                extra={"job_id": job.id, "error_code": err.code},
            )
            return None
        logger.debug(
            f"Audit job queued: {event.action.value}", extra={"job_id": job.id},
        )
        return job.id
