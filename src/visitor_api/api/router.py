"""Root procedure router and middleware registration."""

from fastapi import APIRouter, FastAPI

from visitor_api.api.middleware import SecurityHeadersMiddleware, setup_cors
from visitor_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the procedure router with every procedure group included.

    Args:
        settings: Application settings.

    Returns:
        Router mounted under ``settings.trpc_prefix``.
    """
    from visitor_api.api.procedures.app_users import app_users_router
    from visitor_api.api.procedures.audit_logs import audit_logs_router
    from visitor_api.api.procedures.error_logs import error_logs_router
    from visitor_api.api.procedures.health import health_procedure_router
    from visitor_api.api.procedures.self_check_in import self_check_in_router
    from visitor_api.api.procedures.settings import settings_router
    from visitor_api.api.procedures.visitors import visitors_router

    root_router = APIRouter(prefix=settings.trpc_prefix)
    root_router.include_router(health_procedure_router)
    root_router.include_router(app_users_router)
    root_router.include_router(visitors_router)
    root_router.include_router(self_check_in_router)
    root_router.include_router(settings_router)
    root_router.include_router(audit_logs_router)
    root_router.include_router(error_logs_router)
    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
