from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from loguru import logger

from loyalty_api.core.settings import settings
from loyalty_api.db.session import async_session
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing
from .scheduling import LoyaltyCloudSyncScheduler


APP_VERSION = "0.1.0"


def _session_factory():
    return async_session()


@asynccontextmanager
async def lifespan(app: FastAPI):
    http_client = httpx.AsyncClient(timeout=settings.loyalty_cloud_timeout_seconds)
    app.state.loyalty_http_client = http_client

    sync_scheduler = LoyaltyCloudSyncScheduler(
        session_factory=_session_factory,
        interval_seconds=settings.loyalty_cloud_sync_interval_seconds,
        run_on_start=settings.loyalty_cloud_sync_run_on_start,
    )
    app.state.loyalty_sync_scheduler = sync_scheduler

    sync_enabled = settings.loyalty_cloud_sync_enabled
    if sync_enabled:
        sync_scheduler.start()
        logger.info(
            "Loyalty Cloud sync scheduler enabled",
            interval_seconds=sync_scheduler.interval_seconds,
            run_on_start=settings.loyalty_cloud_sync_run_on_start,
        )
    else:
        logger.info(
            "Loyalty Cloud sync scheduler disabled",
            reason="loyalty_cloud_sync_enabled is false",
        )

    try:
        yield
    finally:
        if sync_enabled and sync_scheduler.is_running:
            await sync_scheduler.stop()
        await http_client.aclose()


def create_app() -> FastAPI:
    """Application factory for the Loyalty Connector FastAPI service."""
    configure_logging(
        service_name="loyalty-connector-api",
        environment=settings.environment,
        version=APP_VERSION,
    )

    app = FastAPI(
        title="Loyalty Connector API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if settings.tracing_enabled:
        configure_tracing(
            app,
            service_name="loyalty-connector-api",
            service_version=APP_VERSION,
            environment=settings.environment,
        )

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
