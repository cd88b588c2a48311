"""AppUser model for staff accounts."""

import enum

from sqlalchemy import Boolean, CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from visitor_api.models.base import Base, IntIdMixin, TimestampMixin


class UserRole(enum.StrEnum):
    """Stored role string. Not enforced beyond storage."""

    USER = "user"
    ADMIN = "admin"


class AppUser(Base, IntIdMixin, TimestampMixin):
    """Staff account. The credential is an opaque string compared verbatim."""

    __tablename__ = "app_users"
    __table_args__ = (CheckConstraint("role IN ('user', 'admin')", name="ck_app_users_role"),)

    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    credential: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=UserRole.USER, server_default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
