"""Pydantic v2 schema for audit log entries."""

from datetime import datetime

from pydantic import Field

from visitor_api.schemas.common import CamelModel


class AuditLogResponse(CamelModel):
    """A single audit trail entry."""

    id: int
    record_id: str | None = None
    user_id: str
    action: str
    details: str | None = None
    timestamp: datetime


class AuditLogQuery(CamelModel):
    """Optional cap on the number of entries returned."""

    limit: int = Field(default=500, ge=1)
