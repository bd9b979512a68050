"""Product Field Validation — pure invariant checks run before any store write.

Invariants:
    - check_product_fields is PURE: returns a list of problems, never raises
    - name non-empty, price >= 0, stock >= 0 (integer), description optional text
    - Upper bounds match the products table: name <= 255 chars, price fits
      NUMERIC(12, 2) after rounding to cents, stock fits a 32-bit INTEGER
    - Create requires name, price and stock; partial updates check only supplied keys
    - Unknown keys are problems (identity and timestamps are never caller-chosen)

Design Decisions:
    - Problems as dicts (field + message): the service wraps them in
      ProductValidationError, the API returns them as field-level details
    - bool rejected for numeric fields even though bool subclasses int
"""

import math
from collections.abc import Mapping
from decimal import Decimal

MUTABLE_FIELDS: tuple[str, ...] = ("name", "description", "price", "stock")
REQUIRED_FIELDS: tuple[str, ...] = ("name", "price", "stock")

NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 5000
PRICE_MAX = Decimal("9999999999.99")  # NUMERIC(12, 2)
STOCK_MAX = 2**31 - 1


def check_product_fields(fields: Mapping, partial: bool = False) -> list[dict]:
    """Validate product business fields. Empty list means valid."""
    problems: list[dict] = []

    for key in fields:
        if key not in MUTABLE_FIELDS:
            problems.append(_problem(key, "field is not writable"))

    if not partial:
        for key in REQUIRED_FIELDS:
            if key not in fields:
                problems.append(_problem(key, "field is required"))

    if "name" in fields:
        problems.extend(_check_name(fields["name"]))
    if "description" in fields:
        problems.extend(_check_description(fields["description"]))
    if "price" in fields:
        problems.extend(_check_price(fields["price"]))
    if "stock" in fields:
        problems.extend(_check_stock(fields["stock"]))
    return problems


def _check_name(value: object) -> list[dict]:
    if not isinstance(value, str) or not value.strip():
        return [_problem("name", "name must be a non-empty string")]
    if len(value) > NAME_MAX_LENGTH:
        return [_problem("name", f"name must be at most {NAME_MAX_LENGTH} characters")]
    return []


def _check_description(value: object) -> list[dict]:
    if value is not None and not isinstance(value, str):
        return [_problem("description", "description must be a string")]
    if value is not None and len(value) > DESCRIPTION_MAX_LENGTH:
        return [_problem(
            "description",
            f"description must be at most {DESCRIPTION_MAX_LENGTH} characters",
        )]
    return []


def _check_price(value: object) -> list[dict]:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return [_problem("price", "price must be a number")]
    finite = value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)
    if not finite:
        return [_problem("price", "price must be a finite number")]
    if value < 0:
        return [_problem("price", "price must not be less than 0")]
    amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    # written rounded to cents
    if amount >= PRICE_MAX + Decimal("0.005"):
        return [_problem("price", f"price must not be greater than {PRICE_MAX}")]
    return []


def _check_stock(value: object) -> list[dict]:
    if isinstance(value, bool) or not isinstance(value, int):
        return [_problem("stock", "stock must be an integer")]
    if value < 0:
        return [_problem("stock", "stock must not be less than 0")]
    if value > STOCK_MAX:
        return [_problem("stock", f"stock must not be greater than {STOCK_MAX}")]
    return []


def _problem(field: str, message: str) -> dict:
    return {"field": field, "message": message}
