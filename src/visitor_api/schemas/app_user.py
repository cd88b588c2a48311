"""Pydantic v2 schemas for staff account operations."""

from datetime import datetime

from pydantic import AliasChoices, Field

from visitor_api.models.app_user import UserRole
from visitor_api.schemas.common import CamelModel, SuccessResponse

_CREDENTIAL_ALIASES = AliasChoices("password", "credential")
_ACTOR_ALIASES = AliasChoices("userId", "actorId", "user_id", "actor_id")


class LoginRequest(CamelModel):
    """Login with username and plain-text credential."""

    username: str | None = None
    password: str | None = Field(default=None, validation_alias=_CREDENTIAL_ALIASES)


class AppUserResponse(CamelModel):
    """Staff account as returned to clients; the credential is never included."""

    id: int
    username: str
    name: str
    role: str
    is_active: bool
    created_at: datetime | None = None


class LoginResponse(SuccessResponse):
    """Successful login."""

    user: AppUserResponse


class AppUserCreateRequest(CamelModel):
    """Request to create a staff account."""

    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, validation_alias=_CREDENTIAL_ALIASES)
    name: str = Field(min_length=1, max_length=255, validation_alias=AliasChoices("name", "displayName"))
    role: UserRole = UserRole.USER
    user_id: str = Field(default="system", validation_alias=_ACTOR_ALIASES)


class AppUserPatch(CamelModel):
    """Partial update of a staff account (all fields optional)."""

    name: str | None = Field(default=None, min_length=1, validation_alias=AliasChoices("name", "displayName"))
    password: str | None = Field(default=None, min_length=1, validation_alias=_CREDENTIAL_ALIASES)
    role: UserRole | None = None
    is_active: bool | None = None


class AppUserRef(CamelModel):
    """Identifies a staff account and the acting user."""

    id: int
    user_id: str = Field(default="system", validation_alias=_ACTOR_ALIASES)
