"""Runtime configuration read from the environment (and ``.env`` when present).

Every setting maps to an upper-case environment variable of the same name,
e.g. ``qr_ttl_hours`` is ``QR_TTL_HOURS``.
"""

import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SCHEMA_NAME = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def is_sqlite_memory_url(url: str) -> bool:
    """True for SQLite URLs that name a private in-memory database."""
    return url.startswith("sqlite") and (":memory:" in url or "mode=memory" in url or url.endswith("://"))


class Settings(BaseSettings):
    """Visitor API settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_url: str | None = Field(
        default=None,
        description="Async SQLAlchemy URL; records live in process memory when unset",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema put first on the search_path",
    )

    # Front desk
    timezone: str = Field(
        default="Asia/Bangkok",
        description="IANA zone whose calendar day the daily stats count",
    )
    qr_ttl_hours: int = Field(default=24, gt=0, description="Hours a self-checkout QR token stays valid")
    bootstrap_default_users: bool = Field(
        default=True,
        description="Seed the admin and staff accounts on startup when there are no users",
    )

    # Server
    environment: str = Field(default="production", description="Reported by GET /")
    trpc_prefix: str = Field(default="/api/trpc", description="Mount point for the procedures")
    cors_origins: str = Field(default="*", description="Comma-separated allowed origins, or *")
    cors_origin_regex: str = Field(default="", description="Allowed-origin regex, in addition to cors_origins")

    # Logging
    log_level: str = Field(default="INFO")
    log_dir: str | None = Field(default=None, description="Enables a daily-rotated log file in this directory")

    @field_validator("database_url")
    @classmethod
    def normalize_database_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        # Hosting platforms hand out sync-style URLs; the engine is async-only.
        if v.startswith("postgres://"):
            v = "postgresql://" + v.removeprefix("postgres://")
        if v.startswith("postgresql://"):
            v = "postgresql+asyncpg://" + v.removeprefix("postgresql://")
        if is_sqlite_memory_url(v):
            msg = "In-memory SQLite is not supported as DATABASE_URL; leave it unset to use the in-memory store"
            raise ValueError(msg)
        return v

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is not None and not _SCHEMA_NAME.match(v):
            msg = f"Invalid database_schema: must match {_SCHEMA_NAME.pattern}"
            raise ValueError(msg)
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            msg = f"Unknown timezone: {v}"
            raise ValueError(msg) from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def cors_origin_list(self) -> list[str]:
        """``cors_origins`` split on commas, blanks dropped."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings()
