"""In-Memory Product Cache — process-local ProductCache for development and tests.

Invariants:
    - Same contract as RedisProductCache: JSON round-trip, per-key TTL, never raises
    - An expired entry is indistinguishable from a miss and is evicted on read
    - Values stored serialized, so callers mutating a returned value never
      corrupt the cached copy

Design Decisions:
    - Monotonic clock injectable: TTL tests advance time instead of sleeping
"""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from catalog.core.errors import TransientInfrastructureError

logger = logging.getLogger(__name__)


class InMemoryProductCache:
    """Dict-backed cache with absolute expiry per entry."""

    def __init__(
        self,
        default_ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: dict[str, tuple[str, float | None]] = {}
        self._default_ttl = default_ttl_seconds
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        payload, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            err = TransientInfrastructureError("cache", "encode", e)
            logger.warning(err.message, extra={"cache_key": key})
            return
        ttl = ttl_seconds or self._default_ttl
        self._entries[key] = (payload, self._clock() + ttl if ttl else None)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and (entry[1] is None or self._clock() < entry[1])
