"""Service Wiring — builds the product service graph once per process.

Invariants:
    - init_services() runs after init_db(); it is the only place leaves are chosen
    - Route handlers reach the graph only through get_product_service / get_broadcaster
    - shutdown_services() drains fan-out tasks before stopping the worker and
      closing Redis clients

Design Decisions:
    - Module-level singletons mirror db_manager (initialized by the lifespan,
      never at import time); tests replace them via app.dependency_overrides
    - Backend choice (redis/memory) read from Settings, not sniffed at runtime
"""

import logging
from dataclasses import dataclass

from catalog.config import Settings
from catalog.infrastructure.activity_log_materializer import ActivityLogMaterializer
from catalog.infrastructure.audit_job_store import (
    InMemoryAuditJobStore, RedisAuditJobStore,
)
from catalog.infrastructure.audit_queue import DurableAuditQueue
from catalog.infrastructure.audit_worker import AuditWorker
from catalog.infrastructure.database import DatabaseSessionManager
from catalog.infrastructure.memory_cache import InMemoryProductCache
from catalog.infrastructure.product_broadcaster import ProductBroadcaster
from catalog.infrastructure.product_store import SqlAlchemyProductStore
from catalog.infrastructure.redis_cache import RedisProductCache
from catalog.services.product_service import ProductService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    service: ProductService
    cache: RedisProductCache | InMemoryProductCache
    broadcaster: ProductBroadcaster
    job_store: RedisAuditJobStore | InMemoryAuditJobStore
    worker: AuditWorker


# Singleton (initialized on startup)
_container: ServiceContainer | None = None


def build_job_store(
    settings: Settings,
) -> RedisAuditJobStore | InMemoryAuditJobStore:
    policy = settings.audit_policy()
    if settings.audit_queue_backend == "memory":
        return InMemoryAuditJobStore(policy)
    return RedisAuditJobStore.from_url(
        settings.audit_queue_url, settings.audit_queue_name, policy,
    )


def build_worker(
    settings: Settings,
    db: DatabaseSessionManager,
    job_store: RedisAuditJobStore | InMemoryAuditJobStore,
) -> AuditWorker:
    return AuditWorker(
        job_store,
        ActivityLogMaterializer(db.session),
        policy=settings.audit_policy(),
        poll_timeout_seconds=settings.audit_poll_timeout_seconds,
    )


def init_services(settings: Settings, db: DatabaseSessionManager) -> ServiceContainer:
    global _container
    if settings.cache_backend == "memory":
        cache = InMemoryProductCache(settings.cache_ttl_seconds)
    else:
        cache = RedisProductCache.from_url(settings.redis_url, settings.cache_ttl_seconds)
    job_store = build_job_store(settings)
    broadcaster = ProductBroadcaster(settings.notifier_listener_buffer)
    service = ProductService(
        store=SqlAlchemyProductStore(db.session),
        cache=cache,
        notifier=broadcaster,
        audit_queue=DurableAuditQueue(job_store),
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    _container = ServiceContainer(
        service=service,
        cache=cache,
        broadcaster=broadcaster,
        job_store=job_store,
        worker=build_worker(settings, db, job_store),
    )
    logger.info(
        f"Services initialized (cache={settings.cache_backend}, "
        f"audit_queue={settings.audit_queue_backend})",
    )
    return _container


def get_container() -> ServiceContainer:
    if _container is None:
        raise RuntimeError("Services not initialized")
    return _container


def get_product_service() -> ProductService:
    """FastAPI dependency for the product service."""
    return get_container().service


def get_broadcaster() -> ProductBroadcaster:
    """FastAPI dependency for the product event broadcaster."""
    return get_container().broadcaster


async def shutdown_services() -> None:
    global _container
    if _container is None:
        return
    # in-flight enqueues must land before the consumer stops
    await _container.service.wait_for_background_tasks()
    await _container.worker.stop()
    await _container.cache.close()
    await _container.job_store.close()
    _container = None
