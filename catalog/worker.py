"""Standalone audit worker — `python -m catalog.worker`.

Consumes the activity-log queue from its own process, for deployments that run
the API with AUDIT_WORKER_ENABLED=false. Same job store, same policy, same
materializer as the in-process worker.
"""

import asyncio
import logging
import signal

from catalog.api.dependencies import build_job_store, build_worker
from catalog.config import get_settings
from catalog.infrastructure.database import init_db
from catalog.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


async def run_worker() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    job_store = build_job_store(settings)
    worker = build_worker(settings, db, job_store)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await worker.start()
    try:
        await stop.wait()
        logger.info("Shutdown signal received")
    finally:
        await worker.stop()
        await job_store.close()
        await db.dispose()


if __name__ == "__main__":
    asyncio.run(run_worker())
