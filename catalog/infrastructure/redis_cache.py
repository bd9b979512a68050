"""Redis Product Cache — best-effort JSON cache that never raises to callers.

Invariants:
    - get: connectivity or decode failure == miss (returns None)
    - set/delete: connectivity or encode failure == no-op
    - Every swallowed failure logged at WARNING as TransientInfrastructureError
    - set without ttl_seconds uses default_ttl_seconds (300 unless configured)

Design Decisions:
    - JSON payloads (json.dumps/loads) over pickle: readable in redis-cli, no code
      execution on decode, same payload shape as the API response
    - Cache is an optimization, never a correctness dependency: the service keeps
      serving from the store with Redis entirely down
"""

import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from catalog.core.errors import TransientInfrastructureError

logger = logging.getLogger(__name__)

_CONNECTIVITY_ERRORS = (RedisError, OSError)


class RedisProductCache:
    """ProductCache over redis.asyncio."""

    def __init__(self, client: redis.Redis, default_ttl_seconds: int = 300):
        self._client = client
        self._default_ttl = default_ttl_seconds

    @classmethod
    def from_url(cls, url: str, default_ttl_seconds: int = 300) -> "RedisProductCache":
        client = redis.from_url(url, decode_responses=True)
        return cls(client, default_ttl_seconds)

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except _CONNECTIVITY_ERRORS as e:
            _log_degraded("get", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            _log_degraded("decode", key, e)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            _log_degraded("encode", key, e)
            return
        try:
            await self._client.set(key, payload, ex=ttl_seconds or self._default_ttl)
        except _CONNECTIVITY_ERRORS as e:
            _log_degraded("set", key, e)

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except _CONNECTIVITY_ERRORS as e:
            _log_degraded("delete", key, e)

    async def ping(self) -> bool:
        """Readiness probe — True when Redis answers PING."""
        try:
            return bool(await self._client.ping())
        except _CONNECTIVITY_ERRORS as e:
            _log_degraded("ping", None, e)
            return False

    async def close(self) -> None:
        await self._client.aclose()


def _log_degraded(operation: str, key: str | None, cause: Exception) -> None:
    err = TransientInfrastructureError("cache", operation, cause)
    logger.warning(
        err.message, extra={"cache_key": key, "error_code": err.code},
    )
