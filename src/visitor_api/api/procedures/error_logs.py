"""Error log procedures: errorLog.create/list/unresolved/resolve."""

from fastapi import APIRouter

from visitor_api.api.trpc import TrpcInput, envelope
from visitor_api.core.dependencies import StoreDep
from visitor_api.schemas.common import CreatedResponse, SuccessResponse
from visitor_api.schemas.error_log import ErrorLogCreateRequest, ErrorLogResolveRequest, ErrorLogResponse
from visitor_api.services import error_log_service

error_logs_router = APIRouter(tags=["errorLog"])


@error_logs_router.post("/errorLog.create")
async def create_entry(payload: TrpcInput, store: StoreDep) -> list:
    body = ErrorLogCreateRequest.model_validate(payload)
    entry = await error_log_service.create_error_log(
        store,
        type=body.type,
        message=body.message,
        source=body.source,
        metadata=body.metadata,
    )
    return envelope(CreatedResponse(id=entry.id))


@error_logs_router.api_route("/errorLog.list", methods=["GET", "POST"])
async def list_entries(store: StoreDep) -> list:
    """The 100 most recent entries, newest first."""
    entries = await error_log_service.list_error_logs(store)
    return envelope([ErrorLogResponse.model_validate(e) for e in entries])


@error_logs_router.api_route("/errorLog.unresolved", methods=["GET", "POST"])
async def list_unresolved(store: StoreDep) -> list:
    entries = await error_log_service.list_unresolved_error_logs(store)
    return envelope([ErrorLogResponse.model_validate(e) for e in entries])


@error_logs_router.post("/errorLog.resolve")
async def resolve_entry(payload: TrpcInput, store: StoreDep) -> list:
    """Idempotent: resolving twice re-stamps the resolver."""
    body = ErrorLogResolveRequest.model_validate(payload)
    await error_log_service.resolve_error_log(store, body.id, body.resolved_by)
    return envelope(SuccessResponse())
