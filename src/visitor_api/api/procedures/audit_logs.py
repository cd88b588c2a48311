"""Audit trail procedure: auditLogs.list."""

from fastapi import APIRouter

from visitor_api.api.trpc import TrpcInput, envelope
from visitor_api.core.dependencies import StoreDep
from visitor_api.schemas.audit_log import AuditLogQuery, AuditLogResponse
from visitor_api.services.audit_service import list_audit_logs

audit_logs_router = APIRouter(tags=["auditLogs"])


@audit_logs_router.api_route("/auditLogs.list", methods=["GET", "POST"])
async def list_entries(payload: TrpcInput, store: StoreDep) -> list:
    """Newest first, capped at 500 entries."""
    query = AuditLogQuery.model_validate(payload)
    entries = await list_audit_logs(store, limit=query.limit)
    return envelope([AuditLogResponse.model_validate(e) for e in entries])
