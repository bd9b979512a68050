"""Domain Types — identity types, enums and the reserved cache key namespace.

Invariants:
    - ProductId wraps the opaque string identity assigned by the store
    - Cache keys live under the reserved "products:" namespace; the list key can
      never collide with an entity key because store ids never equal "list"
    - All valid tags encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (queue payloads are JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ProductId = NewType("ProductId", str)
JobId = NewType("JobId", str)


# ─── Enums ───────────────────────────────────────────────────────

class AuditAction(str, Enum):
    """Activity tags carried by audit events."""
    PRODUCT_CREATED = "PRODUCT_CREATED"
    # Reserved for the auth adapter, which shares the audit queue. The catalog
    # never emits these; the worker still has to decode and materialize them.
    USER_REGISTERED = "USER_REGISTERED"
    USER_LOGIN = "USER_LOGIN"


class ProductEvent(str, Enum):
    """Notification event names broadcast to connected listeners."""
    CREATED = "product:created"


class JobState(str, Enum):
    """Audit job lifecycle inside the durable queue."""
    WAITING = "waiting"
    ACTIVE = "active"
    DELAYED = "delayed"
    COMPLETED = "completed"
    FAILED = "failed"


# ─── Cache Keys ──────────────────────────────────────────────────

CACHE_NAMESPACE = "products"
PRODUCT_LIST_CACHE_KEY = f"{CACHE_NAMESPACE}:list"


def product_cache_key(product_id: str) -> str:
    """Cache key for a single product."""
    return f"{CACHE_NAMESPACE}:{product_id}"
