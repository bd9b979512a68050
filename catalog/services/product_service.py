"""Product Service — consistency protocol across store, cache, notifier and audit queue.

Invariants:
    - Mutations run strictly in order: validate -> persist -> invalidate -> fan-out
    - Validation failure has no side effects (nothing reaches store or cache)
    - Invalidation always deletes products:list; update/delete also products:<id>
    - Fan-out (create only): broadcast + audit enqueue are dispatched, never awaited
      for the caller's result, and their failures never reach the caller
    - Reads consult the cache first; a cached payload that does not parse is a miss
    - update/delete on an absent id raise ResourceNotFoundError before any mutation
    - Only ProductValidationError, ResourceNotFoundError and store errors propagate

Design Decisions:
    - Explicit constructor composition: the four leaves are passed in, no registry
    - No locks: the store is the only source of truth; a reader may see a stale cache
      entry between the store write and the cache delete of the same call
    - Update and delete emit no notification and no audit event, matching the
      activity trail the catalog has always kept (creation and auth events only)
    - Background fan-out tasks held in a set until done (asyncio keeps only weak
      references); wait_for_background_tasks() drains them on shutdown
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from catalog.core.domain_types import (
    AuditAction, ProductEvent, PRODUCT_LIST_CACHE_KEY, product_cache_key,
)
from catalog.core.errors import (
    ErrorContext, ProductValidationError, ResourceNotFoundError,
    TransientInfrastructureError,
)
from catalog.core.repository_protocols import (
    AuditQueue, ProductCache, ProductNotifier, ProductStore,
)
from catalog.core.validate_product import check_product_fields
from catalog.schemas.activity import AuditEvent, RequestSource
from catalog.schemas.product import ProductRecord

logger = logging.getLogger(__name__)

DELETED_MESSAGE = "Product deleted successfully"


class ProductService:
    """Create/read/update/delete products through the cache-aside protocol."""

    def __init__(
        self,
        store: ProductStore,
        cache: ProductCache,
        notifier: ProductNotifier,
        audit_queue: AuditQueue,
        cache_ttl_seconds: int = 300,
    ):
        self._store = store
        self._cache = cache
        self._notifier = notifier
        self._audit_queue = audit_queue
        self._cache_ttl = cache_ttl_seconds
        self._background: set[asyncio.Task] = set()

    # -- Mutations -------------------------------------------------------------

    async def create(
        self,
        fields: Mapping[str, Any],
        actor_id: str | None = None,
        source: RequestSource | None = None,
    ) -> ProductRecord:
        _raise_if_invalid(fields, partial=False, operation="create")
        product = await self._store.insert(fields)
        await self._cache.delete(PRODUCT_LIST_CACHE_KEY)
        self._fan_out_created(product, actor_id, source)
        return product

    async def update(
        self, product_id: str, changes: Mapping[str, Any],
    ) -> ProductRecord:
        _raise_if_invalid(changes, partial=True, operation="update")
        existing = await self._store.get_by_id(product_id)
        if existing is None:
            raise ResourceNotFoundError(
                "Product", product_id, ErrorContext(operation="update"),
            )
        updated = await self._store.replace(
            existing.model_copy(update=dict(changes)),
        )
        await self._invalidate(product_id)
        return updated

    async def delete(self, product_id: str) -> dict:
        if not await self._store.delete(product_id):
            raise ResourceNotFoundError(
                "Product", product_id, ErrorContext(operation="delete"),
            )
        await self._invalidate(product_id)
        return {"message": DELETED_MESSAGE}

    # -- Reads -----------------------------------------------------------------

    async def get_by_id(self, product_id: str) -> ProductRecord:
        key = product_cache_key(product_id)
        cached = await self._cache.get(key)
        if cached is not None:
            hit = _parse_cached(key, lambda: ProductRecord.model_validate(cached))
            if hit is not None:
                return hit

        product = await self._store.get_by_id(product_id)
        if product is None:
            raise ResourceNotFoundError(
                "Product", product_id, ErrorContext(operation="get"),
            )
        await self._cache.set(key, product.model_dump(mode="json"), self._cache_ttl)
        return product

    async def list_all(self) -> list[ProductRecord]:
        cached = await self._cache.get(PRODUCT_LIST_CACHE_KEY)
        if cached is not None:
            hit = _parse_cached(
                PRODUCT_LIST_CACHE_KEY,
                lambda: [ProductRecord.model_validate(item) for item in cached],
            )
            if hit is not None:
                return hit

        products = await self._store.list_all()
        await self._cache.set(
            PRODUCT_LIST_CACHE_KEY,
            [p.model_dump(mode="json") for p in products],
            self._cache_ttl,
        )
        return products

    # -- Fan-out ---------------------------------------------------------------

    async def wait_for_background_tasks(self) -> None:
        """Drain pending fan-out tasks (shutdown, tests)."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _fan_out_created(
        self,
        product: ProductRecord,
        actor_id: str | None,
        source: RequestSource | None,
    ) -> None:
        try:
            self._notifier.broadcast(
                ProductEvent.CREATED.value, product.model_dump(mode="json"),
            )
        except Exception as e:
            _log_fan_out_failure("notifier", "broadcast", product.id, e)

        source = source or RequestSource()
        event = AuditEvent(
            actor_id=actor_id,
            action=AuditAction.PRODUCT_CREATED,
            details=f"Product created: {product.name} ({product.id})",
            ip_address=source.ip_address,
            user_agent=source.user_agent,
        )
        task = asyncio.create_task(self._enqueue_audit(event, product.id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _enqueue_audit(self, event: AuditEvent, product_id: str) -> None:
        try:
            await self._audit_queue.enqueue(event)
        except Exception as e:
            _log_fan_out_failure("audit_queue", "enqueue", product_id, e)

    async def _invalidate(self, product_id: str) -> None:
        await self._cache.delete(PRODUCT_LIST_CACHE_KEY)
        await self._cache.delete(product_cache_key(product_id))


def _raise_if_invalid(
    fields: Mapping[str, Any], partial: bool, operation: str,
) -> None:
    problems = check_product_fields(fields, partial=partial)
    if problems:
        raise ProductValidationError(problems, ErrorContext(operation=operation))


def _parse_cached(key: str, parse):
    """Run parse(); a malformed cached payload degrades to a miss."""
    try:
        return parse()
    except (ValidationError, TypeError) as e:
        err = TransientInfrastructureError("cache", "decode", e)
        logger.warning(err.message, extra={"cache_key": key, "error_code": err.code})
        return None


def _log_fan_out_failure(
    component: str, operation: str, product_id: str, cause: Exception,
) -> None:
    err = TransientInfrastructureError(component, operation, cause)
    logger.error(
        err.message,
        extra={"product_id": product_id, "error_code": err.code},
    )
