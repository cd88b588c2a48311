"""Pydantic v2 schemas for visitor record operations."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from visitor_api.models.visitor_record import ConsentType, VisitorRecord, VisitorType
from visitor_api.schemas.common import CamelModel, SuccessResponse

_ACTOR_ALIASES = AliasChoices("userId", "actorId", "user_id", "actor_id")
_VISITOR_TYPE_KEYS = ("type", "visitorType", "visitor_type")


def resolve_visitor_type(data: Any) -> Any:
    """Collapse the visitor type keys into ``type``: first non-empty value, else ``visitor``.

    Clients send blank or null form fields, and older web forms use ``visitorType``.
    """
    if not isinstance(data, dict):
        return data
    chosen = next((data[key] for key in _VISITOR_TYPE_KEYS if data.get(key)), VisitorType.VISITOR)
    resolved = {key: value for key, value in data.items() if key not in _VISITOR_TYPE_KEYS}
    resolved["type"] = chosen
    return resolved


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class VisitorCheckInRequest(CamelModel):
    """Fields supplied by staff when checking a visitor in.

    ``full_name`` and ``recorded_by`` are checked by the lifecycle service so
    that a missing name is reported as a validation failure, not a schema error.
    """

    full_name: str | None = None
    type: VisitorType = VisitorType.VISITOR
    id_number: str | None = None
    phone: str | None = None
    company: str | None = None
    photo_uri: str | None = None
    visitor_card_photo_uri: str | None = None
    id_card_photo_uri: str | None = None
    purpose: str | None = None
    access_area: str | None = None
    notes: str | None = None
    vehicle_plate: str | None = None
    recorded_by: str | None = None
    consent_type: ConsentType = ConsentType.CHECKBOX
    consent_signature: str | None = None

    @model_validator(mode="before")
    @classmethod
    def default_blank_type(cls, data: Any) -> Any:
        return resolve_visitor_type(data)

    @field_validator("consent_type", mode="before")
    @classmethod
    def default_blank_consent_type(cls, v: Any) -> Any:
        return ConsentType.CHECKBOX if v is None or v == "" else v


class VisitorPatch(CamelModel):
    """Partial update of a visitor record; only fields that are present are applied.

    ``record_id``, ``check_in_time`` and ``status`` are deliberately absent.
    """

    full_name: str | None = None
    type: VisitorType | None = None
    id_number: str | None = None
    phone: str | None = None
    company: str | None = None
    photo_uri: str | None = None
    visitor_card_photo_uri: str | None = None
    id_card_photo_uri: str | None = None
    purpose: str | None = None
    access_area: str | None = None
    notes: str | None = None
    vehicle_plate: str | None = None


class VisitorRef(CamelModel):
    """Identifies a visitor record."""

    record_id: str = Field(min_length=1, validation_alias=AliasChoices("recordId", "record_id", "id"))


class VisitorActionRequest(VisitorRef):
    """Identifies a visitor record and the acting user."""

    user_id: str = Field(default="system", validation_alias=_ACTOR_ALIASES)


class ForceCheckOutRequest(VisitorActionRequest):
    """Operator override check-out."""

    reason: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class VisitorSummaryResponse(CamelModel):
    """Visitor record for list endpoints; media is reduced to presence flags."""

    id: str = Field(description="External record id")
    db_id: int
    full_name: str
    type: str
    id_number: str | None = None
    phone: str | None = None
    company: str | None = None
    has_photo: bool = False
    has_visitor_card_photo: bool = False
    has_id_card_photo: bool = False
    purpose: str | None = None
    access_area: str | None = None
    notes: str | None = None
    vehicle_plate: str | None = None
    check_in_time: datetime
    check_out_time: datetime | None = None
    status: str
    recorded_by: str
    consent_type: str
    consent_time: datetime | None = None
    has_consent_signature: bool = False
    qr_code: str | None = None
    qr_expiry: datetime | None = None

    @classmethod
    def from_record(cls, record: VisitorRecord) -> "VisitorSummaryResponse":
        return cls(
            id=record.record_id,
            db_id=record.id,
            full_name=record.full_name,
            type=record.type,
            id_number=record.id_number,
            phone=record.phone,
            company=record.company,
            has_photo=bool(record.photo_uri),
            has_visitor_card_photo=bool(record.visitor_card_photo_uri),
            has_id_card_photo=bool(record.id_card_photo_uri),
            purpose=record.purpose,
            access_area=record.access_area,
            notes=record.notes,
            vehicle_plate=record.vehicle_plate,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            status=record.status,
            recorded_by=record.recorded_by,
            consent_type=record.consent_type,
            consent_time=record.consent_time,
            has_consent_signature=bool(record.consent_signature),
            qr_code=record.qr_code,
            qr_expiry=record.qr_expiry,
        )


class VisitorDetailResponse(CamelModel):
    """Full visitor record including media payloads."""

    id: str = Field(description="External record id")
    db_id: int
    photo_uri: str | None = None
    full_name: str
    type: str
    id_number: str | None = None
    phone: str | None = None
    company: str | None = None
    visitor_card_photo_uri: str | None = None
    id_card_photo_uri: str | None = None
    purpose: str | None = None
    access_area: str | None = None
    notes: str | None = None
    vehicle_plate: str | None = None
    check_in_time: datetime
    check_out_time: datetime | None = None
    status: str
    recorded_by: str
    consent_type: str
    consent_time: datetime | None = None
    consent_signature: str | None = None
    qr_code: str | None = None
    qr_expiry: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VisitorRecord) -> "VisitorDetailResponse":
        data = {attr: getattr(record, attr) for attr in cls.model_fields if attr not in ("id", "db_id")}
        return cls(id=record.record_id, db_id=record.id, **data)


class CheckInResponse(SuccessResponse):
    """Result of a staff check-in."""

    id: int
    record_id: str
    qr_code: str | None = None
    check_in_time: datetime


class VisitorStatsResponse(CamelModel):
    """Daily visitor counters."""

    today_in: int
    today_out: int
    pending: int
