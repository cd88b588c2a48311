"""VisitorRecord model: a single visitor's check-in session.

A record is created IN and moves to OUT exactly once; OUT is terminal.
``record_id`` is the externally visible identifier (``<PREFIX>-<epoch ms>-<suffix>``)
and never changes after assignment.
"""

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from visitor_api.models.base import Base, IntIdMixin, TimestampMixin, UTCDateTime


class VisitorStatus(enum.StrEnum):
    """Lifecycle state of a visitor record."""

    IN = "IN"
    OUT = "OUT"


class VisitorType(enum.StrEnum):
    """Visitor classification."""

    VISITOR = "visitor"
    CASUAL = "casual"
    ORGANIZER = "organizer"
    CONTRACTOR = "contractor"


class ConsentType(enum.StrEnum):
    """How the visitor gave data-collection consent."""

    SIGNATURE = "signature"
    CHECKBOX = "checkbox"


class VisitorRecord(Base, IntIdMixin, TimestampMixin):
    """A visitor check-in session.

    Attributes:
        record_id: Unique, immutable external identifier.
        full_name: Visitor's name (required).
        type: Visitor classification.
        photo_uri / visitor_card_photo_uri / id_card_photo_uri: Opaque URIs or inline data URIs.
        check_in_time: Set at creation, never modified.
        check_out_time: Set exactly once, on the IN -> OUT transition.
        status: IN or OUT.
        recorded_by: Identity of the actor that created the record.
        consent_type / consent_time / consent_signature: Consent evidence.
        qr_code / qr_expiry: Self-service checkout token and its expiry.
    """

    __tablename__ = "visitor_records"
    __table_args__ = (
        CheckConstraint("status IN ('IN', 'OUT')", name="ck_visitor_records_status"),
        CheckConstraint(
            "type IN ('visitor', 'casual', 'organizer', 'contractor')",
            name="ck_visitor_records_type",
        ),
        CheckConstraint("consent_type IN ('signature', 'checkbox')", name="ck_visitor_records_consent_type"),
        CheckConstraint(
            "status = 'IN' OR (check_out_time IS NOT NULL AND check_out_time >= check_in_time)",
            name="ck_visitor_records_checkout_time",
        ),
    )

    record_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    photo_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default=VisitorType.VISITOR)
    id_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    visitor_card_photo_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    id_card_photo_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    access_area: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    vehicle_plate: Mapped[str | None] = mapped_column(String(64), nullable=True)
    check_in_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    check_out_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    status: Mapped[str] = mapped_column(String(8), nullable=False, default=VisitorStatus.IN, index=True)
    recorded_by: Mapped[str] = mapped_column(String(64), nullable=False)
    consent_type: Mapped[str] = mapped_column(String(16), nullable=False, default=ConsentType.CHECKBOX)
    consent_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    consent_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    qr_code: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    qr_expiry: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
