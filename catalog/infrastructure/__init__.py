"""Infrastructure Layer — adapters for Postgres, Redis and in-process fan-out.

Invariants:
    - Each adapter implements one core/ protocol
    - Cache, notifier and audit queue adapters swallow their own outages and log
      them; only the store surfaces failures

Design Decisions:
    - Every Redis-backed adapter has an in-memory twin with the same contract
      for development and tests
"""
