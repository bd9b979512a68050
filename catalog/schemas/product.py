"""Product Schemas — the product record plus request bodies for create and update.

Invariants:
    - ProductRecord is the single shape shared by store, cache payloads, API
      responses and notification payloads
    - Timestamps are always timezone-aware UTC (naive values from SQLite are tagged)
    - ProductCreate/ProductUpdate forbid unknown fields (id and timestamps are
      never caller-chosen)

Design Decisions:
    - price as float backed by Numeric(12, 2): JSON echoes 999.99, not "999.99"
    - ProductUpdate has no defaults that matter: routes use exclude_unset=True so
      only supplied keys reach the service
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.core.validate_product import (
    DESCRIPTION_MAX_LENGTH, NAME_MAX_LENGTH, PRICE_MAX, STOCK_MAX,
)


class ProductRecord(BaseModel):
    """Persisted product — identity, business fields, timestamps."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    price: float
    stock: int
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class ProductCreate(BaseModel):
    """Product creation body."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    price: float = Field(ge=0, le=float(PRICE_MAX))
    stock: int = Field(ge=0, le=STOCK_MAX)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class ProductUpdate(BaseModel):
    """Partial product update body — any subset of the business fields."""
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    price: float | None = Field(None, ge=0, le=float(PRICE_MAX))
    stock: int | None = Field(None, ge=0, le=STOCK_MAX)


class DeleteResponse(BaseModel):
    message: str
