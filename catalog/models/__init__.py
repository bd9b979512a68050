"""ORM Models — SQLAlchemy declarative models for the catalog.

Invariants:
    - All models inherit from Base (db/base.py)
    - products is the system of record; activity_logs is append-only audit

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete for alembic
      and for create_all in tests
"""

from catalog.models.product import Product  # noqa: F401
from catalog.models.activity_log import ActivityLog  # noqa: F401
