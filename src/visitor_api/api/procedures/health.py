"""Liveness endpoints: plain ``GET /health`` and the enveloped ``health`` procedure."""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from loguru import logger

from visitor_api.api.trpc import envelope, error_envelope
from visitor_api.core.clock import utcnow
from visitor_api.core.dependencies import StoreDep
from visitor_api.storage.base import Store

health_router = APIRouter(tags=["health"])
health_procedure_router = APIRouter(tags=["health"])


async def _probe(store: Store) -> bool:
    try:
        await store.ping()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return False
    return True


@health_router.get("/health", response_model=None)
async def health_check(store: StoreDep) -> dict[str, Any] | JSONResponse:
    """Report liveness; 500 when the store cannot be reached."""
    if not await _probe(store):
        return JSONResponse(
            status_code=500,
            content={"status": "unhealthy", "database": "disconnected", "timestamp": utcnow().isoformat()},
        )
    return {"status": "ok", "database": "connected", "timestamp": utcnow().isoformat()}


@health_procedure_router.get("/health", response_model=None)
async def health_procedure(store: StoreDep) -> list | JSONResponse:
    if not await _probe(store):
        return error_envelope("Store unavailable", "INTERNAL_SERVER_ERROR", 500)
    return envelope({"status": "ok", "database": "connected", "timestamp": utcnow()})
