"""Pydantic v2 schemas for error log operations."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from visitor_api.schemas.common import CamelModel


class ErrorLogCreateRequest(CamelModel):
    """Report of a failure detected by a client or component."""

    type: str = Field(min_length=1, max_length=64)
    message: str = Field(min_length=1)
    source: str = Field(min_length=1, max_length=64)
    metadata: Any | None = None


class ErrorLogResolveRequest(CamelModel):
    """Mark an error log entry as resolved."""

    id: int
    resolved_by: str = Field(min_length=1, validation_alias=AliasChoices("resolvedBy", "resolved_by", "userId"))


class ErrorLogResponse(CamelModel):
    """A single error log entry."""

    id: int
    type: str
    message: str
    source: str
    metadata: Any | None = Field(default=None, validation_alias=AliasChoices("details", "metadata"))
    resolved: bool
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    created_at: datetime
