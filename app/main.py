"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers
- Error handlers (centralized failure-to-HTTP mapping)
- Request context middleware (correlation ids, request logging)
- Security middleware (headers, CORS)
- Logging configuration
- Shutdown coordination (signals, fatal faults, resource cleanup)

No business logic belongs here.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, settings as default_settings
from app.infrastructure.database import Database
from app.interfaces.health import router as health_router
from app.interfaces.resources.router import router as resources_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.request_context import REQUEST_ID_HEADER, RequestContextMiddleware
from app.shared.security.body_limit import RequestSizeLimitMiddleware
from app.shared.security.headers import SecurityHeadersMiddleware
from app.shared.shutdown import ShutdownCoordinator, ShutdownPhase

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: prepare the schema and arm shutdown handling."""
    app_settings: Settings = app.state.settings
    database: Database = app.state.database
    coordinator: ShutdownCoordinator = app.state.shutdown

    if app_settings.environment == "dev":
        database.create_all()

    if app_settings.handle_process_signals:
        coordinator.install(asyncio.get_running_loop())

    logger.info("%s %s started", app_settings.project_name, app_settings.version)

    yield

    if app_settings.handle_process_signals:
        coordinator.uninstall()
    # Server stopped on its own (not through a trigger): release resources directly
    if coordinator.phase is ShutdownPhase.RUNNING:
        database.shutdown()


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, middleware and the shutdown
    coordinator. This is the composition root of the application.

    Args:
        app_settings: Settings override; defaults to the environment settings.

    Returns:
        A fully configured FastAPI application instance.
    """
    app_settings = app_settings or default_settings
    configure_logging(level=app_settings.log_level)

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.version,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        lifespan=lifespan,
    )

    database = Database(app_settings.database_url, echo=app_settings.database_echo)
    coordinator = ShutdownCoordinator(deadline=app_settings.shutdown_timeout_seconds)
    coordinator.register(database)

    app.state.settings = app_settings
    app.state.database = database
    app.state.shutdown = coordinator

    # --- Body size limit (innermost; its 413 is rendered by the error classifier) ---
    app.add_middleware(
        RequestSizeLimitMiddleware, max_bytes=app_settings.max_request_size_bytes
    )

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_allow_origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    # --- Request Context (outermost, so every log line is correlated) ---
    app.add_middleware(RequestContextMiddleware)

    # --- Routers ---
    app.include_router(health_router)
    app.include_router(resources_router)

    return app


app = create_app()
