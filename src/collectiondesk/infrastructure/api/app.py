"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with its routes, exception
handlers, middleware and lifecycle handlers.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from collectiondesk.application.services.collection_manager import CollectionManager
from collectiondesk.core.config import Settings, get_settings
from collectiondesk.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from collectiondesk.infrastructure.gateways.base import CollectionDataGateway
from collectiondesk.infrastructure.gateways.memory_gateway import InMemoryCollectionGateway
from collectiondesk.infrastructure.persistence.database import DatabaseManager, init_database

logger = get_logger(__name__)


async def build_gateway(settings: Settings) -> tuple[CollectionDataGateway, DatabaseManager | None]:
    """Create the gateway selected by ``settings.gateway_backend``.

    Returns:
        Tuple of (gateway, database manager or None for the memory backend).
    """
    if settings.gateway_backend == "sql":
        from collectiondesk.infrastructure.gateways.sql_gateway import SqlCollectionGateway

        db = DatabaseManager(settings)
        await init_database(db)
        logger.info("SQL gateway initialized")
        return SqlCollectionGateway(db), db

    logger.info("In-memory gateway initialized")
    return InMemoryCollectionGateway(), None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the collection manager unless one was injected, and releases the
    database on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings: Settings = app.state.settings
    configure_logging(settings)

    logger.info(
        "Starting CollectionDesk",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        gateway_backend=settings.gateway_backend,
    )

    db: DatabaseManager | None = None
    if getattr(app.state, "collection_manager", None) is None:
        try:
            gateway, db = await build_gateway(settings)
            manager = CollectionManager(gateway, settings)
            await manager.load_collections()
        except Exception as e:
            logger.error("Failed to initialize collection manager", error=str(e))
            raise
        app.state.collection_manager = manager

    yield

    logger.info("Shutting down CollectionDesk")
    if db is not None:
        await db.disconnect()


def create_app(
    manager: CollectionManager | None = None, settings: Settings | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        manager: Pre-built manager; when omitted the lifespan builds one
            from settings.
        settings: Application settings; defaults to the cached settings.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Schema-governed collections with migrations and bulk operations",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.collection_manager = manager

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app)
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint."""
        settings: Settings = app.state.settings
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check: the collection manager is available."""
        settings: Settings = app.state.settings
        if app.state.collection_manager is None:
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "service": settings.app_name},
            )
        return {
            "status": "ready",
            "service": settings.app_name,
            "gateway_backend": settings.gateway_backend,
        }


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from collectiondesk.infrastructure.api.routes import collections_router, records_router

    settings: Settings = app.state.settings

    app.include_router(
        collections_router, prefix=f"{settings.api_prefix}/collections", tags=["collections"]
    )
    app.include_router(
        records_router, prefix=f"{settings.api_prefix}/collections", tags=["records"]
    )

    @app.get(settings.api_prefix, tags=["root"])
    async def api_root():
        """API root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "api_version": "v1",
        }


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if app.state.settings.debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Log every request and attach a correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()
