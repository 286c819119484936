"""
Main module for the LoadLab API.
"""

import asyncio
import os
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import sentry_sdk
import structlog

from core.config import Settings, settings as default_settings
from core.errors import LoadLabError
from core.logging import configure_logging
from misc.active_tasks import ActiveTaskRegistry
from misc.shutdown import install_drain_handlers
from services.memory_service import MemoryService
from services.task_runner import TaskRunner

from api.load_routes import router as load_router
from api.system_routes import router as system_router

logger = structlog.getLogger(__name__)


async def log_stats(registry: ActiveTaskRegistry, interval: float):
    """Periodically log how many CPU tasks this worker is running."""
    while True:
        await asyncio.sleep(interval)
        logger.info(f"Active tasks: {registry.size()}")


async def startup_event(app: FastAPI):
    """Initialize resources on startup."""
    settings: Settings = app.state.settings
    configure_logging(settings.LOG_LEVEL, settings.ENV_MODE)
    logger.info("Initializing application resources...")

    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=1.0,
        )

    registry: ActiveTaskRegistry = app.state.task_registry
    app.state.restore_signals = install_drain_handlers(registry)

    app.state.stats_task = None
    if settings.STATS_LOG_INTERVAL_SECONDS > 0:
        app.state.stats_task = asyncio.create_task(
            log_stats(registry, settings.STATS_LOG_INTERVAL_SECONDS)
        )

    logger.info(f"Worker running on port {settings.PORT}")


async def shutdown_event(app: FastAPI):
    """Cleanup resources on shutdown."""
    logger.info("Shutting down application...")

    stats_task: Optional[asyncio.Task] = app.state.stats_task
    if stats_task is not None:
        stats_task.cancel()
        with suppress(asyncio.CancelledError):
            await stats_task

    drained = app.state.task_registry.drain_and_terminate_all()
    logger.info(f"Terminated {drained} active tasks on shutdown")
    app.state.restore_signals()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup and shutdown events."""
    await startup_event(app)

    yield

    await shutdown_event(app)


async def loadlab_error_handler(request: Request, exc: LoadLabError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "details": exc.details, "pid": os.getpid()},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Server error", "details": str(exc), "pid": os.getpid()},
    )


def create_app(settings: Settings = default_settings) -> FastAPI:
    """Build an application with its own task registry and services."""
    app = FastAPI(title=settings.API_TITLE, description=settings.API_DESCRIPTION, lifespan=lifespan)

    registry = ActiveTaskRegistry()
    app.state.settings = settings
    app.state.task_registry = registry
    app.state.task_runner = TaskRunner(
        registry, grace_period=settings.CPU_GRACE_PERIOD_SECONDS
    )
    app.state.memory_service = MemoryService(
        chunk_mb=settings.MEMORY_CHUNK_MB,
        yield_every=settings.MEMORY_YIELD_EVERY_CHUNKS,
        step_pause_ms=settings.MEMORY_STEP_PAUSE_MS,
        expose_gc=settings.EXPOSE_GC,
    )

    app.add_exception_handler(LoadLabError, loadlab_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include API routers
    app.include_router(system_router, tags=["system"])
    app.include_router(load_router, prefix="/api", tags=["load"])

    return app


app = create_app()


def run():
    import uvicorn

    uvicorn.run(
        "main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        workers=default_settings.WORKERS,
        timeout_graceful_shutdown=default_settings.SHUTDOWN_TIMEOUT_SECONDS,
    )


if __name__ == "__main__":
    run()
