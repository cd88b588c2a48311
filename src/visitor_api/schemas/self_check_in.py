"""Pydantic v2 schemas for the public self check-in kiosk and web form."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from visitor_api.models.visitor_record import VisitorRecord, VisitorStatus, VisitorType
from visitor_api.schemas.common import CamelModel, SuccessResponse
from visitor_api.schemas.visitor import resolve_visitor_type


class ConsentResponse(CamelModel):
    """Consent text shown before self check-in."""

    consent_text: str


class SelfCheckInRequest(CamelModel):
    """Self check-in form submission.

    ``type`` falls back to ``visitorType`` and then to ``visitor`` when blank;
    ``lockerNumber`` is stored in the record's vehicle/locker field.
    """

    full_name: str | None = None
    type: VisitorType = VisitorType.VISITOR
    id_number: str | None = None
    phone: str | None = None
    company: str | None = None
    purpose: str | None = None
    access_area: str | None = None
    notes: str | None = None
    photo_data: str | None = None
    locker_number: str | None = None
    consent_accepted: bool = False

    @model_validator(mode="before")
    @classmethod
    def default_blank_type(cls, data: Any) -> Any:
        return resolve_visitor_type(data)


class SelfCheckInResponse(SuccessResponse):
    """Successful self check-in; ``qr_code`` is what the kiosk renders."""

    record_id: str
    qr_code: str
    qr_data: str
    check_in_time: datetime
    message: str = "Check-in successful"


class SelfCheckOutRequest(CamelModel):
    """Self-service checkout by scanned QR token."""

    qr_token: str = Field(min_length=1, validation_alias=AliasChoices("qrToken", "qrCode", "qrData", "qr_token"))


class SelfCheckOutResponse(SuccessResponse):
    """Successful self-service checkout."""

    full_name: str
    check_out_time: datetime


class SelfCheckInRecord(BaseModel):
    """Visitor record in the snake_case shape used by the self check-in web client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    record_id: str
    full_name: str
    type: str
    id_number: str | None = None
    phone: str | None = None
    company: str | None = None
    purpose: str | None = None
    locker_number: str | None = None
    department: str | None = None
    work_area: str | None = None
    qr_code: str | None = None
    qr_expiry: datetime | None = None
    check_in_time: datetime
    check_out_time: datetime | None = None
    status: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: VisitorRecord) -> "SelfCheckInRecord":
        return cls(
            id=record.id,
            record_id=record.record_id,
            full_name=record.full_name,
            type=record.type,
            id_number=record.id_number,
            phone=record.phone,
            company=record.company,
            purpose=record.purpose,
            locker_number=record.vehicle_plate,
            work_area=record.access_area,
            qr_code=record.qr_code,
            qr_expiry=record.qr_expiry,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            status="checked_in" if record.status == VisitorStatus.IN else "checked_out",
            created_at=record.created_at,
        )
