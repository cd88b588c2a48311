"""Visitor lifecycle service: check-in, check-out, edits, and daily statistics.

A visitor record has two states. It is created IN by a check-in and moves to
OUT exactly once through one of three exits (staff checkout, operator force
checkout, or self-service checkout by QR token). OUT is terminal.

Every committed mutation is followed by one audit append. The append is
best-effort (see ``audit_service.append_audit``), so an audit failure never
turns a committed transition into a reported failure.

Already-checked-out records are rejected with ``AlreadyCheckedOutError`` on
all three exits.
"""

import base64
import secrets
import string
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo

from loguru import logger

from visitor_api.core.clock import as_utc, day_bounds, epoch_millis, utcnow
from visitor_api.core.errors import (
    AlreadyCheckedOutError,
    ConflictError,
    InputValidationError,
    NotFoundError,
    TokenExpiredError,
)
from visitor_api.models.visitor_record import ConsentType, VisitorRecord, VisitorStatus
from visitor_api.schemas.self_check_in import SelfCheckInRequest
from visitor_api.schemas.visitor import VisitorCheckInRequest, VisitorPatch
from visitor_api.services.audit_service import AuditAction, append_audit
from visitor_api.storage.base import Store

STAFF_RECORD_PREFIX = "VMS"
SELF_RECORD_PREFIX = "SELF"
SELF_CHECKIN_ACTOR = "self-checkin"
SELF_CHECKOUT_ACTOR = "self-checkout"
DEFAULT_QR_TTL_HOURS = 24

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 8
_MAX_ID_ATTEMPTS = 3

_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "full_name",
        "type",
        "id_number",
        "phone",
        "company",
        "photo_uri",
        "visitor_card_photo_uri",
        "id_card_photo_uri",
        "purpose",
        "access_area",
        "notes",
        "vehicle_plate",
    }
)
_NON_NULLABLE_FIELDS: frozenset[str] = frozenset({"full_name", "type"})


@dataclass(frozen=True)
class DailyStats:
    """Visitor counters for one calendar day."""

    today_in: int
    today_out: int
    pending: int


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


def generate_record_id(prefix: str, now: datetime) -> str:
    """Build ``<prefix>-<epoch ms>-<random base36 suffix>``."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}-{epoch_millis(now)}-{suffix}"


def generate_qr_token(record_id: str, expiry: datetime) -> str:
    """Build the self-checkout token encoded in the visitor's QR code."""
    digest = base64.b64encode(record_id.encode()).decode()[:12]
    return f"VMS:{record_id}:{digest}:{epoch_millis(expiry)}"


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


async def list_visitors(store: Store) -> list[VisitorRecord]:
    """Return all visitor records, most recent check-in first."""
    return await store.list_visitors()


async def list_active_visitors(store: Store) -> list[VisitorRecord]:
    """Return records currently IN, most recent check-in first."""
    return await store.list_visitors(status=VisitorStatus.IN)


async def get_visitor(store: Store, record_id: str) -> VisitorRecord | None:
    """Return a record by its external id, or None."""
    return await store.get_visitor(record_id)


def summarize_day(records: Iterable[VisitorRecord], start: datetime, end: datetime) -> DailyStats:
    """Count check-ins and check-outs inside ``[start, end)`` and records still IN.

    ``pending`` covers every record that is IN, regardless of when it checked in.
    """
    today_in = today_out = pending = 0
    for record in records:
        if start <= as_utc(record.check_in_time) < end:
            today_in += 1
        if record.check_out_time is not None and start <= as_utc(record.check_out_time) < end:
            today_out += 1
        if record.status == VisitorStatus.IN:
            pending += 1
    return DailyStats(today_in=today_in, today_out=today_out, pending=pending)


async def compute_daily_stats(store: Store, as_of: date, tz: tzinfo) -> DailyStats:
    """Compute visitor counters for the calendar day ``as_of`` in timezone ``tz``."""
    start, end = day_bounds(as_of, tz)
    return summarize_day(await store.list_visitors(), start, end)


# ---------------------------------------------------------------------------
# Check-in
# ---------------------------------------------------------------------------


async def check_in(
    store: Store,
    data: VisitorCheckInRequest,
    *,
    recorded_by: str | None = None,
    prefix: str = STAFF_RECORD_PREFIX,
    action: AuditAction = AuditAction.CHECK_IN,
    qr_ttl_hours: int = DEFAULT_QR_TTL_HOURS,
) -> VisitorRecord:
    """Create a new IN record with a fresh record id and self-checkout token.

    Args:
        store: The active store.
        data: Visitor fields.
        recorded_by: Acting identity; defaults to ``data.recorded_by``.
        prefix: Record id prefix.
        action: Audit tag for the check-in.
        qr_ttl_hours: Lifetime of the self-checkout token.

    Returns:
        The persisted record.

    Raises:
        InputValidationError: If the name or acting identity is missing, or a
            signature consent has no signature.
    """
    full_name = (data.full_name or "").strip()
    if not full_name:
        msg = "Full name is required"
        raise InputValidationError(msg)
    actor = (recorded_by or data.recorded_by or "").strip()
    if not actor:
        msg = "recordedBy is required"
        raise InputValidationError(msg)
    if data.consent_type == ConsentType.SIGNATURE and not data.consent_signature:
        msg = "A signature is required for signature consent"
        raise InputValidationError(msg)

    fields = data.model_dump(exclude={"full_name", "recorded_by"})
    for attempt in range(1, _MAX_ID_ATTEMPTS + 1):
        now = utcnow()
        record_id = generate_record_id(prefix, now)
        qr_expiry = now + timedelta(hours=qr_ttl_hours)
        record = VisitorRecord(
            **fields,
            record_id=record_id,
            full_name=full_name,
            recorded_by=actor,
            status=VisitorStatus.IN,
            check_in_time=now,
            check_out_time=None,
            consent_time=now,
            qr_code=generate_qr_token(record_id, qr_expiry),
            qr_expiry=qr_expiry,
            created_at=now,
            updated_at=now,
        )
        try:
            stored = await store.add_visitor(record)
            break
        except ConflictError:
            if attempt == _MAX_ID_ATTEMPTS:
                raise
            logger.warning(f"Record id collision on {record_id}, regenerating (attempt {attempt})")

    logger.info(f"Visitor {stored.record_id} checked in by {actor}")
    await append_audit(
        store,
        action=action,
        actor_id=actor,
        record_id=stored.record_id,
        details=f"{full_name} checked in",
    )
    return stored


async def self_check_in(
    store: Store,
    data: SelfCheckInRequest,
    *,
    qr_ttl_hours: int = DEFAULT_QR_TTL_HOURS,
) -> VisitorRecord:
    """Check in from the public web form; consent must be explicitly accepted.

    Raises:
        InputValidationError: If the name is missing or consent was not accepted.
    """
    if not (data.full_name or "").strip():
        msg = "Full name is required"
        raise InputValidationError(msg)
    if not data.consent_accepted:
        msg = "Consent is required to check in"
        raise InputValidationError(msg)
    request = VisitorCheckInRequest(
        full_name=data.full_name,
        type=data.type,
        id_number=data.id_number,
        phone=data.phone,
        company=data.company,
        purpose=data.purpose,
        access_area=data.access_area,
        notes=data.notes,
        vehicle_plate=data.locker_number,
        photo_uri=data.photo_data,
        consent_type=ConsentType.CHECKBOX,
    )
    return await check_in(
        store,
        request,
        recorded_by=SELF_CHECKIN_ACTOR,
        prefix=SELF_RECORD_PREFIX,
        action=AuditAction.SELF_CHECK_IN,
        qr_ttl_hours=qr_ttl_hours,
    )


# ---------------------------------------------------------------------------
# Check-out
# ---------------------------------------------------------------------------


def _require_in(record: VisitorRecord | None, record_id: str) -> VisitorRecord:
    if record is None:
        msg = f"Visitor record {record_id} not found"
        raise NotFoundError(msg)
    if record.status != VisitorStatus.IN:
        raise AlreadyCheckedOutError(record_id)
    return record


async def _transition_out(
    store: Store,
    record: VisitorRecord,
    *,
    actor_id: str,
    action: AuditAction,
    details: str,
) -> VisitorRecord:
    """Commit IN -> OUT, then audit. The conditional write decides races."""
    checked_out_at = max(utcnow(), as_utc(record.check_in_time))
    if not await store.mark_checked_out(record.record_id, checked_out_at):
        if await store.get_visitor(record.record_id) is None:
            msg = f"Visitor record {record.record_id} not found"
            raise NotFoundError(msg)
        raise AlreadyCheckedOutError(record.record_id)

    record.status = VisitorStatus.OUT
    record.check_out_time = checked_out_at
    record.updated_at = checked_out_at
    logger.info(f"Visitor {record.record_id} checked out ({action}) by {actor_id}")
    await append_audit(store, action=action, actor_id=actor_id, record_id=record.record_id, details=details)
    return record


async def check_out(store: Store, record_id: str, actor_id: str) -> VisitorRecord:
    """Check a visitor out on behalf of staff.

    Raises:
        NotFoundError: If the record does not exist.
        AlreadyCheckedOutError: If the record is already OUT.
    """
    record = _require_in(await store.get_visitor(record_id), record_id)
    return await _transition_out(
        store,
        record,
        actor_id=actor_id,
        action=AuditAction.CHECK_OUT,
        details=f"{record.full_name} checked out",
    )


async def force_check_out(store: Store, record_id: str, actor_id: str, reason: str | None = None) -> VisitorRecord:
    """Operator override checkout, e.g. for a visitor who left without checking out.

    Raises:
        NotFoundError: If the record does not exist.
        AlreadyCheckedOutError: If the record is already OUT.
    """
    record = _require_in(await store.get_visitor(record_id), record_id)
    details = f"{record.full_name} force checked out"
    if reason:
        details = f"{details}: {reason}"
    return await _transition_out(
        store,
        record,
        actor_id=actor_id,
        action=AuditAction.FORCE_CHECK_OUT,
        details=details,
    )


async def check_out_by_token(store: Store, qr_token: str) -> VisitorRecord:
    """Self-service checkout using the token from the visitor's QR code.

    Raises:
        NotFoundError: If no record carries the token.
        AlreadyCheckedOutError: If the record is already OUT.
        TokenExpiredError: If the token is past its expiry.
    """
    record = await store.get_visitor_by_qr(qr_token)
    if record is None:
        msg = "QR code not found"
        raise NotFoundError(msg)
    _require_in(record, record.record_id)
    if record.qr_expiry is not None and as_utc(record.qr_expiry) < utcnow():
        raise TokenExpiredError
    return await _transition_out(
        store,
        record,
        actor_id=SELF_CHECKOUT_ACTOR,
        action=AuditAction.CHECK_OUT,
        details=f"{record.full_name} checked out via self-service",
    )


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


async def update_visitor(store: Store, record_id: str, patch: VisitorPatch, *, actor_id: str) -> VisitorRecord:
    """Apply the fields present in ``patch``; all other fields keep their values.

    ``updated_at`` is refreshed even when the patch is empty.

    Raises:
        InputValidationError: If a required field is cleared.
        NotFoundError: If the record does not exist.
    """
    changes = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if k in _UPDATABLE_FIELDS}
    for field in _NON_NULLABLE_FIELDS & changes.keys():
        if changes[field] is None or (isinstance(changes[field], str) and not changes[field].strip()):
            msg = f"{field} cannot be empty"
            raise InputValidationError(msg)
    if "full_name" in changes:
        changes["full_name"] = changes["full_name"].strip()

    if not await store.update_visitor(record_id, {**changes, "updated_at": utcnow()}):
        msg = f"Visitor record {record_id} not found"
        raise NotFoundError(msg)

    logger.info(f"Visitor {record_id} updated by {actor_id}: {sorted(changes)}")
    await append_audit(
        store,
        action=AuditAction.EDIT_RECORD,
        actor_id=actor_id,
        record_id=record_id,
        details=f"Record updated: {', '.join(sorted(changes))}" if changes else "Record updated",
    )
    record = await store.get_visitor(record_id)
    if record is None:
        msg = f"Visitor record {record_id} not found"
        raise NotFoundError(msg)
    return record


async def delete_visitor(store: Store, record_id: str, *, actor_id: str) -> None:
    """Hard-delete a record. Its audit entries are kept.

    Raises:
        NotFoundError: If the record does not exist.
    """
    record = await store.get_visitor(record_id)
    if record is None or not await store.delete_visitor(record_id):
        msg = f"Visitor record {record_id} not found"
        raise NotFoundError(msg)

    logger.info(f"Visitor {record_id} deleted by {actor_id}")
    await append_audit(
        store,
        action=AuditAction.DELETE_RECORD,
        actor_id=actor_id,
        record_id=record_id,
        details=f"{record.full_name} record deleted",
    )
