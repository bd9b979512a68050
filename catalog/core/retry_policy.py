"""Audit Queue Policy — retry, backoff and retention rules for audit jobs.

Invariants:
    - A job gets at most max_attempts processing attempts (default 3)
    - Backoff after the n-th failed attempt is base * 2^(n-1) ms (2000, 4000, ...)
    - Completed jobs kept for completed_retention_seconds AND at most
      completed_retention_count entries; the tighter bound wins
    - Failed jobs kept for failed_retention_seconds, then discarded
    - All functions PURE: time is passed in (epoch seconds), never read

Design Decisions:
    - One frozen policy object shared by the Redis and in-memory job stores,
      so both backends prune identically
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

T = TypeVar("T")


class FailureOutcome(str, Enum):
    """What happens to a job after a failed attempt."""
    RETRY = "retry"
    FAIL = "fail"


@dataclass(frozen=True)
class AuditQueuePolicy:
    """Fixed queue policy for audit events."""
    max_attempts: int = 3
    backoff_base_ms: int = 2000
    completed_retention_seconds: int = 3600
    completed_retention_count: int = 1000
    failed_retention_seconds: int = 86_400


def backoff_delay_ms(attempts_made: int, base_ms: int) -> int:
    """Exponential backoff before the next attempt, given failed attempts so far."""
    return base_ms * 2 ** (max(attempts_made, 1) - 1)


def outcome_after_failure(
    attempts_made: int, policy: AuditQueuePolicy,
) -> FailureOutcome:
    """Retry while attempts remain, otherwise move the job to the failed bucket."""
    if attempts_made < policy.max_attempts:
        return FailureOutcome.RETRY
    return FailureOutcome.FAIL


def retry_ready_at(now: float, attempts_made: int, policy: AuditQueuePolicy) -> float:
    """Epoch seconds at which a failed job becomes eligible again."""
    return now + backoff_delay_ms(attempts_made, policy.backoff_base_ms) / 1000


def completed_cutoff(now: float, policy: AuditQueuePolicy) -> float:
    """Completed entries finished before this instant are discarded."""
    return now - policy.completed_retention_seconds


def failed_cutoff(now: float, policy: AuditQueuePolicy) -> float:
    """Failed entries finished before this instant are discarded."""
    return now - policy.failed_retention_seconds


def prune_completed(
    entries: list[tuple[float, T]], now: float, policy: AuditQueuePolicy,
) -> list[tuple[float, T]]:
    """Apply completed retention to (finished_at, item) pairs, oldest first."""
    cutoff = completed_cutoff(now, policy)
    kept = [e for e in sorted(entries, key=lambda e: e[0]) if e[0] >= cutoff]
    if policy.completed_retention_count <= 0:
        return []
    return kept[-policy.completed_retention_count:]


def prune_failed(
    entries: list[tuple[float, T]], now: float, policy: AuditQueuePolicy,
) -> list[tuple[float, T]]:
    """Apply failed retention to (finished_at, item) pairs, oldest first."""
    cutoff = failed_cutoff(now, policy)
    return [e for e in sorted(entries, key=lambda e: e[0]) if e[0] >= cutoff]
