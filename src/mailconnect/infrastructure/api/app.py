"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with its routes, middleware and
lifecycle handlers.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from mailconnect.core.config import get_settings
from mailconnect.core.hooks import HookEvent, HookRegistry
from mailconnect.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from mailconnect.domain.entities.hook_context import HookContext
from mailconnect.infrastructure.persistence.database import (
    close_database,
    get_db_manager,
    init_database,
)
from mailconnect.infrastructure.scheduler import CleanupScheduler
from mailconnect.infrastructure.services import build_mail_services

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings = get_settings()

    # Startup
    configure_logging(settings)
    logger.info(
        "Starting MailConnect",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        await init_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    services = build_mail_services(
        get_db_manager().session_factory,
        hook_registry=app.state.hook_registry,
    )
    app.state.mail_services = services

    scheduler = None
    if settings.cleanup_schedule_enabled:
        scheduler = CleanupScheduler(services.retention, settings.cleanup_interval_seconds)
        scheduler.start()
    app.state.cleanup_scheduler = scheduler

    bootstrap_context = HookContext(app=app)
    await app.state.hook_registry.trigger(event=HookEvent.ON_BOOTSTRAP, context=bootstrap_context)
    await app.state.hook_registry.trigger(event=HookEvent.ON_SERVE, context=bootstrap_context)
    logger.info("ON_BOOTSTRAP and ON_SERVE hooks triggered")

    yield

    # Shutdown
    logger.info("Shutting down MailConnect")

    if scheduler is not None:
        await scheduler.stop()

    await app.state.hook_registry.trigger(
        event=HookEvent.ON_TERMINATE,
        context=HookContext(app=app),
    )

    await close_database()
    logger.info("Database connection closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="SMTP relay and mail send log",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Hosts register their own mail hooks on this registry before startup
    app.state.hook_registry = HookRegistry()

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
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity.
        """
        return {
            "status": "healthy",
            "service": "MailConnect",
            "version": get_settings().app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check endpoint, including database connectivity."""
        db_healthy = await get_db_manager().check_connection()

        if db_healthy:
            return {
                "status": "ready",
                "service": "MailConnect",
                "version": get_settings().app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": "MailConnect",
                "database": "disconnected",
            },
        )


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from mailconnect.infrastructure.api.routes import mail_router

    settings = get_settings()

    app.include_router(mail_router, prefix=f"{settings.api_prefix}/mail", tags=["mail"])

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
                "detail": str(exc) if get_settings().debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Log every request and tag it with a correlation ID."""
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


# Create the application instance
app = create_app()
