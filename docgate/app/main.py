"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from docgate.app.api.routes.auth import router as auth_router
from docgate.app.api.routes.documents import router as documents_router
from docgate.app.api.routes.health import router as health_router
from docgate.app.api.routes.metrics import router as metrics_router
from docgate.app.api.routes.query import router as query_router
from docgate.app.config import Settings, get_settings
from docgate.app.errors import register_exception_handlers
from docgate.app.services import GatewayServices, build_services

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(
    services: GatewayServices | None = None,
    settings: Settings | None = None,
    acquire_store: bool = True,
) -> FastAPI:
    """Build the application.

    Args:
        services: Pre-built services (default: built from settings at startup)
        settings: Settings used when building services (default: environment)
        acquire_store: Find or create the remote store before serving

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(settings or get_settings())
        gateway: GatewayServices = app.state.services
        if acquire_store:
            name = gateway.settings.file_search_store_name
            logger.info(f"Initializing remote store {name!r}")
            store = await gateway.store_handle.acquire(name)
            logger.info(f"Remote store ready: {store.id}")
        yield

    app = FastAPI(title="Docgate API", version=VERSION, lifespan=lifespan)
    app.state.services = services

    register_exception_handlers(app)

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(auth_router)
    app.include_router(documents_router)
    app.include_router(query_router)

    return app
