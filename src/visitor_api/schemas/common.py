"""Common Pydantic v2 schemas shared across the API.

External payloads use camelCase field names; Python code uses snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for schemas exchanged with the mobile and web clients."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SuccessResponse(CamelModel):
    """Acknowledgement for mutating operations."""

    success: bool = True


class FailureResponse(CamelModel):
    """Structured business failure; delivered with HTTP 200."""

    success: bool = False
    error: str = Field(description="User-facing error message")


class CreatedResponse(SuccessResponse):
    """Acknowledgement carrying the new row's id."""

    id: int
