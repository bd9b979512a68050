"""Product Store — SQLAlchemy implementation of the ProductStore protocol.

Invariants:
    - Store assigns identity and timestamps; insert sets created_at == updated_at
    - replace refreshes updated_at; created_at is never written after insert
    - list_all ordered by created_at descending (newest first)
    - Every call opens, commits and closes its own session before returning —
      no eventual-consistency window at this layer
    - Persistence failures surface as DatabaseError/ConflictError via the
      session manager; no retry here

Design Decisions:
    - Session scope injected as a callable (db_manager.session): the store never
      touches the module-level singleton, so tests hand it an in-memory SQLite scope
    - Prices rounded to 2 places before write so the returned record matches what
      Numeric(12, 2) persists
"""

import logging
import uuid
from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.errors import ResourceNotFoundError
from catalog.models.product import Product
from catalog.schemas.product import ProductRecord

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlAlchemyProductStore:
    """Durable product persistence over an async SQLAlchemy session scope."""

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    async def insert(self, fields: Mapping[str, Any]) -> ProductRecord:
        now = datetime.now(timezone.utc)
        row = Product(
            id=str(uuid.uuid4()),
            name=fields["name"],
            description=fields.get("description"),
            price=_to_price(fields["price"]),
            stock=int(fields["stock"]),
            created_at=now,
            updated_at=now,
        )
        async with self._session_scope() as db:
            db.add(row)
            await db.commit()
            logger.info(
                "Product inserted", extra={"product_id": row.id},
            )
            return ProductRecord.model_validate(row)

    async def get_by_id(self, product_id: str) -> ProductRecord | None:
        async with self._session_scope() as db:
            row = await db.get(Product, product_id)
            return ProductRecord.model_validate(row) if row else None

    async def list_all(self) -> list[ProductRecord]:
        async with self._session_scope() as db:
            result = await db.execute(
                select(Product).order_by(
                    Product.created_at.desc(), Product.id,
                ),
            )
            return [ProductRecord.model_validate(r) for r in result.scalars().all()]

    async def replace(self, record: ProductRecord) -> ProductRecord:
        async with self._session_scope() as db:
            row = await db.get(Product, record.id)
            if row is None:
                raise ResourceNotFoundError("Product", record.id)
            row.name = record.name
            row.description = record.description
            row.price = _to_price(record.price)
            row.stock = record.stock
            row.updated_at = datetime.now(timezone.utc)
            await db.commit()
            logger.info(
                "Product replaced", extra={"product_id": row.id},
            )
            return ProductRecord.model_validate(row)

    async def delete(self, product_id: str) -> bool:
        async with self._session_scope() as db:
            row = await db.get(Product, product_id)
            if row is None:
                return False
            await db.delete(row)
            await db.commit()
            logger.info(
                "Product deleted", extra={"product_id": product_id},
            )
            return True


def _to_price(value: Any) -> float:
    return round(float(value), 2)
