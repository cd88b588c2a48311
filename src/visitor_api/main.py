"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and the procedure routers.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from visitor_api import __version__
from visitor_api.core.config import Settings, get_settings
from visitor_api.core.database import dispose_engine
from visitor_api.core.logging import setup_logging
from visitor_api.services.app_user_service import ensure_default_users
from visitor_api.storage import build_store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: build the store on startup, release it on shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, log_dir=settings.log_dir)

    store = build_store(settings)
    await store.initialize()
    if settings.bootstrap_default_users:
        await ensure_default_users(store)
    app.state.store = store
    logger.info(f"Visitor API {__version__} started ({settings.environment})")

    yield

    await store.close()
    await dispose_engine()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Visitor API",
        description="Hotel visitor check-in and check-out management",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    from visitor_api.api.errors import register_exception_handlers
    from visitor_api.api.procedures.health import health_router
    from visitor_api.api.router import create_router, setup_middleware

    register_exception_handlers(app)
    setup_middleware(app, settings)
    app.include_router(health_router)
    app.include_router(create_router(settings))

    @app.get("/")
    async def root() -> dict:
        """Service metadata."""
        return {
            "name": "visitor-api",
            "version": __version__,
            "environment": settings.environment,
            "procedures": settings.trpc_prefix,
        }

    return app
