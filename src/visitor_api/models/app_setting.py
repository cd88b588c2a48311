"""AppSetting model: a flat key/value table for operator-configurable values."""

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from visitor_api.models.base import Base, IntIdMixin, UTCDateTime


class AppSetting(Base, IntIdMixin):
    """One setting; writes upsert by ``key``."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
