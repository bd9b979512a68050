"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Tests never touch a real Postgres or Redis: SQLite in-memory plus the
      in-memory cache and audit queue backends
    - Every test that asks for db_manager gets a fresh, empty schema

Design Decisions:
    - StaticPool: one connection shared by every session, so the in-memory
      database survives across the store's per-call sessions
    - DatabaseSessionManager built around the test engine (not a fake) so the
      rollback/error mapping under test is the production one
"""

import os

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("AUDIT_QUEUE_BACKEND", "memory")
os.environ.setdefault("AUDIT_WORKER_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from catalog.db.base import Base  # noqa: E402
from catalog.infrastructure.database import DatabaseSessionManager  # noqa: E402
import catalog.models  # noqa: E402,F401


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_manager(test_engine):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    return manager
