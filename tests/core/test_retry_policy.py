"""Audit Queue Policy — backoff, retry decisions and retention pruning.

Tests:
    - Backoff doubles per failed attempt from the 2000 ms base
    - Third failure is terminal under the default policy
    - Completed retention applies both the time window and the count cap
    - Failed retention applies only the time window
"""

from catalog.core.retry_policy import (
    AuditQueuePolicy, FailureOutcome,
    backoff_delay_ms, outcome_after_failure, prune_completed, prune_failed,
    retry_ready_at,
)

POLICY = AuditQueuePolicy()


def test_default_policy_values():
    assert POLICY.max_attempts == 3
    assert POLICY.backoff_base_ms == 2000
    assert POLICY.completed_retention_seconds == 3600
    assert POLICY.completed_retention_count == 1000
    assert POLICY.failed_retention_seconds == 86_400


def test_backoff_doubles():
    assert [backoff_delay_ms(n, 2000) for n in (1, 2, 3)] == [2000, 4000, 8000]


def test_retry_until_attempts_exhausted():
    assert outcome_after_failure(1, POLICY) == FailureOutcome.RETRY
    assert outcome_after_failure(2, POLICY) == FailureOutcome.RETRY
    assert outcome_after_failure(3, POLICY) == FailureOutcome.FAIL


def test_retry_ready_at_in_seconds():
    assert retry_ready_at(100.0, 2, POLICY) == 104.0


def test_prune_completed_drops_entries_older_than_window():
    now = 10_000.0
    entries = [(now - 3601, "old"), (now - 3600, "edge"), (now, "new")]
    assert [i for _, i in prune_completed(entries, now, POLICY)] == ["edge", "new"]


def test_prune_completed_keeps_newest_by_count():
    policy = AuditQueuePolicy(completed_retention_count=2)
    entries = [(3.0, "c"), (1.0, "a"), (2.0, "b")]
    assert [i for _, i in prune_completed(entries, 3.0, policy)] == ["b", "c"]


def test_prune_completed_zero_count_keeps_nothing():
    policy = AuditQueuePolicy(completed_retention_count=0)
    assert prune_completed([(1.0, "a")], 1.0, policy) == []


def test_prune_failed_uses_day_window_only():
    now = 100_000.0
    entries = [(now - 86_401, "old")] + [(now - i, f"f{i}") for i in range(5)]
    kept = prune_failed(entries, now, POLICY)
    assert len(kept) == 5
    assert "old" not in [i for _, i in kept]
