"""FastAPI application entry point for the submission delivery pipeline.

Environment Variables:
- ENVIRONMENT: "production" for JSON logs (default: development)
- RUN_DELIVERY_WORKER: Run the queue worker inside the API process
  (default: false; production runs scripts/run_delivery_worker.py)
"""

import asyncio
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from submission_delivery.api.middleware import LoggingMiddleware
from submission_delivery.api.routes.delivery import router as delivery_router
from submission_delivery.api.routes.health import router as health_router
from submission_delivery.api.routes.metrics import router as metrics_router
from submission_delivery.api.routes.monitoring import router as monitoring_router
from submission_delivery.api.routes.submissions import router as submissions_router
from submission_delivery.bootstrap.container import get_container
from submission_delivery.bootstrap.database import close_database_engine
from submission_delivery.bootstrap.logging import configure_structlog

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_structlog(os.environ.get("ENVIRONMENT", "development"))
    container = get_container()
    worker_task: asyncio.Task[None] | None = None
    if os.environ.get("RUN_DELIVERY_WORKER", "").lower() in ("1", "true", "yes"):
        worker_task = asyncio.create_task(container.worker.run())
        logger.info("embedded_delivery_worker_started")

    yield

    if worker_task is not None:
        container.worker.stop()
        await worker_task
    await close_database_engine()


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    application = FastAPI(
        title="Submission Delivery API",
        description="Submission pathways, delivery queue and progress tracking",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.add_middleware(LoggingMiddleware)
    application.include_router(health_router)
    application.include_router(metrics_router)
    application.include_router(submissions_router)
    application.include_router(delivery_router)
    application.include_router(monitoring_router)
    return application


app = create_app()
