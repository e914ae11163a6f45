"""
ops_console.api.app

FastAPI app factory for the ops console access service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/guard handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory, access runtime).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ops_console import __version__
from ops_console.api.guards import install_guard_handlers
from ops_console.api.routers.admin import router as admin_router
from ops_console.api.routers.console import router as console_router
from ops_console.api.routers.dev_auth import router as dev_auth_router
from ops_console.api.routers.health import router as health_router
from ops_console.api.routers.navigation import router as navigation_router
from ops_console.db.init_db import init_db
from ops_console.db.session import create_engine, create_sessionmaker
from ops_console.observability.logging import configure_logging, get_logger
from ops_console.observability.middleware import RequestContextMiddleware
from ops_console.services.access_service import AccessRuntime
from ops_console.settings import Settings, get_settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)
        app.state.access = AccessRuntime.from_sessionmaker(settings, app.state.sessionmaker)
        try:
            yield
        finally:
            # Flush pending audit writes before the pool goes away.
            await app.state.access.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Ops Console Access Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    install_guard_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(navigation_router)
    app.include_router(console_router)
    app.include_router(admin_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Routers never read process settings directly; `get_settings` is overridden with the
# instance passed here so tests can build apps with isolated databases.
