"""Service test fixtures — ProductService over real leaves.

Invariants:
    - Store is SqlAlchemyProductStore on in-memory SQLite (root conftest)
    - Cache, broadcaster and audit queue are the in-memory backends
    - store_spy counts Store reads so read-through can be asserted

Design Decisions:
    - Real leaves over mocks where a real in-process leaf exists; mocks only
      to force failures
"""

import pytest

from catalog.infrastructure.audit_job_store import InMemoryAuditJobStore
from catalog.infrastructure.audit_queue import DurableAuditQueue
from catalog.infrastructure.memory_cache import InMemoryProductCache
from catalog.infrastructure.product_broadcaster import ProductBroadcaster
from catalog.infrastructure.product_store import SqlAlchemyProductStore
from catalog.services.product_service import ProductService


class StoreSpy:
    """Delegates to a real store, counting read calls."""

    def __init__(self, store):
        self._store = store
        self.get_calls = 0
        self.list_calls = 0

    async def insert(self, fields):
        return await self._store.insert(fields)

    async def get_by_id(self, product_id):
        self.get_calls += 1
        return await self._store.get_by_id(product_id)

    async def list_all(self):
        self.list_calls += 1
        return await self._store.list_all()

    async def replace(self, record):
        return await self._store.replace(record)

    async def delete(self, product_id):
        return await self._store.delete(product_id)


@pytest.fixture
def store_spy(db_manager):
    return StoreSpy(SqlAlchemyProductStore(db_manager.session))


@pytest.fixture
def cache():
    return InMemoryProductCache()


@pytest.fixture
def broadcaster():
    return ProductBroadcaster()


@pytest.fixture
def job_store():
    return InMemoryAuditJobStore()


@pytest.fixture
async def service(store_spy, cache, broadcaster, job_store):
    service = ProductService(
        store=store_spy,
        cache=cache,
        notifier=broadcaster,
        audit_queue=DurableAuditQueue(job_store),
    )
    yield service
    await service.wait_for_background_tasks()
