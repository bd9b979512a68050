"""Database Package — SQLAlchemy declarative Base shared by models and alembic.

Invariants:
    - Single async engine per process lives in infrastructure/database.py (init_db)

Design Decisions:
    - asyncpg driver for PostgreSQL (native async, no thread pool overhead)
"""
