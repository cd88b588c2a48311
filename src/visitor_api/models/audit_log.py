"""AuditLog model for the append-only user action trail."""

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from visitor_api.models.base import Base, IntIdMixin, UTCDateTime


class AuditLog(Base, IntIdMixin):
    """Immutable record of a user-initiated action. Write-only (no updates or deletes).

    ``record_id`` and ``user_id`` are plain strings, not foreign keys, so entries
    outlive the visitor records and accounts they mention.
    """

    __tablename__ = "audit_logs"

    record_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
