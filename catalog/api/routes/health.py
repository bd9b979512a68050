"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 only if the database is unreachable
    - Cache status is reported but never fails readiness (the cache is optional)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from catalog.api import dependencies
from catalog.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "product-catalog-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe — database connectivity, plus cache status."""
    db_manager = database.db_manager
    db_ok = await db_manager.health_check() if db_manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    try:
        cache_ok = await dependencies.get_container().cache.ping()
    except RuntimeError:
        cache_ok = False
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "cache": "healthy" if cache_ok else "degraded",
        },
    }
