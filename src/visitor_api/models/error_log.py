"""ErrorLog model for system-detected failures an operator should act on."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from visitor_api.models.base import Base, IntIdMixin, UTCDateTime


class ErrorLog(Base, IntIdMixin):
    """A reported failure. Created unresolved; resolving is one-way."""

    __tablename__ = "error_logs"

    type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(64), nullable=False)
    # "metadata" is reserved on declarative classes.
    details: Mapped[Any | None] = mapped_column("metadata", JSON, nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
