"""Product ORM — the system-of-record row for a catalog product.

Invariants:
    - id is an opaque string (uuid4 text) assigned by the store, never by callers
    - created_at set once on insert; updated_at refreshed on every write
    - price Numeric(12, 2) read back as float; stock non-negative integer
    - created_at indexed: list_all orders by it descending

Design Decisions:
    - String(36) primary key over native UUID: ids stay opaque strings end to end,
      and a malformed id is just a lookup miss instead of a driver error
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, String, Text, Integer, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from catalog.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    """Product entity — business fields plus identity and timestamps."""
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False,
    )
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
