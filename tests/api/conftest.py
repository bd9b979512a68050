"""API test fixtures — FastAPI app with the service graph overridden.

Invariants:
    - Lifespan is not run (ASGITransport): nothing connects to Postgres or Redis
    - get_product_service / get_broadcaster overridden with in-memory leaves
      over the SQLite test database
    - db_manager patched so readiness probes hit the test engine
"""

import pytest
from httpx import ASGITransport, AsyncClient

import catalog.infrastructure.database as db_module
from catalog.api.dependencies import get_broadcaster, get_product_service
from catalog.infrastructure.audit_job_store import InMemoryAuditJobStore
from catalog.infrastructure.audit_queue import DurableAuditQueue
from catalog.infrastructure.memory_cache import InMemoryProductCache
from catalog.infrastructure.product_broadcaster import ProductBroadcaster
from catalog.infrastructure.product_store import SqlAlchemyProductStore
from catalog.main import app
from catalog.services.product_service import ProductService


@pytest.fixture
def job_store():
    return InMemoryAuditJobStore()


@pytest.fixture
def broadcaster():
    return ProductBroadcaster()


@pytest.fixture
async def product_service(db_manager, broadcaster, job_store):
    service = ProductService(
        store=SqlAlchemyProductStore(db_manager.session),
        cache=InMemoryProductCache(),
        notifier=broadcaster,
        audit_queue=DurableAuditQueue(job_store),
    )
    yield service
    await service.wait_for_background_tasks()


@pytest.fixture
async def client(db_manager, product_service, broadcaster):
    app.dependency_overrides[get_product_service] = lambda: product_service
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster

    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
