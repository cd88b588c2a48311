"""Pydantic v2 schemas for application settings."""

import re

from pydantic import AliasChoices, Field, field_validator

from visitor_api.schemas.common import CamelModel

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SettingsResponse(CamelModel):
    """All well-known settings with defaults applied."""

    consent_text: str
    retention_days: int
    notification_time: str
    email_enabled: bool
    email_recipient: str
    email_send_time: str
    email_include_details: bool


class SettingsUpdateRequest(CamelModel):
    """Partial settings update; only provided keys are written."""

    consent_text: str | None = None
    retention_days: int | None = Field(default=None, ge=1)
    notification_time: str | None = None
    email_enabled: bool | None = None
    email_recipient: str | None = None
    email_send_time: str | None = None
    email_include_details: bool | None = None
    user_id: str = Field(default="system", validation_alias=AliasChoices("userId", "actorId", "user_id"))

    @field_validator("notification_time", "email_send_time")
    @classmethod
    def validate_time_of_day(cls, v: str | None) -> str | None:
        if v is not None and not _TIME_OF_DAY.match(v):
            msg = "Time must be in HH:MM format"
            raise ValueError(msg)
        return v

    def changes(self) -> dict[str, object]:
        """Provided setting keys (camelCase) mapped to their new values."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True, by_alias=True).items()
            if key != "userId" and value is not None
        }
