"""Catalog API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CatalogError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, services and the in-process audit worker initialized on startup
      via lifespan; fan-out tasks drained and clients closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Audit worker runs in-process by default (AUDIT_WORKER_ENABLED); set it false
      and run `python -m catalog.worker` to consume from a separate process
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog.api.dependencies import init_services, shutdown_services
from catalog.api.error_handlers import register_error_handlers
from catalog.api.routes import health, product_events, products
from catalog.config import get_settings
from catalog.infrastructure.database import init_db
from catalog.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    container = init_services(settings, db)
    if settings.audit_worker_enabled:
        await container.worker.start()
    logger.info("Catalog API started")
    yield
    logger.info("Catalog API shutting down")
    await shutdown_services()
    await db.dispose()


app = FastAPI(
    title="Product Catalog API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# product_events before products: /events must not be captured by /{product_id}
app.include_router(health.router)
app.include_router(product_events.router)
app.include_router(products.router)

register_error_handlers(app)
