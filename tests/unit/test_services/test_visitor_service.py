"""Tests for the visitor lifecycle service."""

import asyncio
import base64
import re
from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock, patch
from zoneinfo import ZoneInfo

import pytest

from visitor_api.core.clock import day_bounds, utcnow
from visitor_api.core.errors import (
    AlreadyCheckedOutError,
    ConflictError,
    InputValidationError,
    NotFoundError,
    StorageError,
    TokenExpiredError,
)
from visitor_api.models import ConsentType, VisitorStatus, VisitorType
from visitor_api.schemas.self_check_in import SelfCheckInRequest
from visitor_api.schemas.visitor import VisitorCheckInRequest, VisitorPatch
from visitor_api.services import visitor_service
from visitor_api.services.audit_service import AuditAction
from visitor_api.storage import MemoryStore
from visitor_api.storage.base import Store

_RECORD_ID = re.compile(r"^VMS-\d{13}-[0-9a-z]{8}$")


def _check_in_request(**overrides) -> VisitorCheckInRequest:
    fields = {"full_name": "Jane Doe", "recorded_by": "staff01", "company": "Acme"}
    fields.update(overrides)
    return VisitorCheckInRequest(**fields)


async def _audit_for(store: Store, record_id: str) -> list:
    return [e for e in await store.list_audit_logs(limit=500) if e.record_id == record_id]


class TestIdentifiers:
    def test_record_id_format(self) -> None:
        record_id = visitor_service.generate_record_id("VMS", utcnow())
        assert _RECORD_ID.match(record_id)

    def test_record_id_embeds_epoch_millis(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        assert visitor_service.generate_record_id("SELF", now).startswith("SELF-1767225600000-")

    def test_qr_token_format(self) -> None:
        expiry = datetime(2026, 1, 2, tzinfo=UTC)
        token = visitor_service.generate_qr_token("VMS-1-abc", expiry)
        digest = base64.b64encode(b"VMS-1-abc").decode()[:12]
        assert token == f"VMS:VMS-1-abc:{digest}:1767312000000"


class TestCheckIn:
    async def test_creates_in_record_with_token(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())

        assert _RECORD_ID.match(record.record_id)
        assert record.status == VisitorStatus.IN
        assert record.check_out_time is None
        assert record.recorded_by == "staff01"
        assert record.qr_code.startswith(f"VMS:{record.record_id}:")
        assert record.qr_expiry - record.check_in_time == timedelta(hours=24)
        stored = await store.get_visitor(record.record_id)
        assert stored.company == "Acme"

    async def test_appends_check_in_audit(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        entries = await _audit_for(store, record.record_id)
        assert [e.action for e in entries] == [AuditAction.CHECK_IN]
        assert entries[0].user_id == "staff01"

    async def test_custom_ttl(self, memory_store: MemoryStore) -> None:
        record = await visitor_service.check_in(memory_store, _check_in_request(), qr_ttl_hours=2)
        assert record.qr_expiry - record.check_in_time == timedelta(hours=2)

    @pytest.mark.parametrize("name", [None, "", "   "])
    async def test_requires_full_name(self, memory_store: MemoryStore, name: str | None) -> None:
        with pytest.raises(InputValidationError, match="Full name is required"):
            await visitor_service.check_in(memory_store, _check_in_request(full_name=name))
        assert await memory_store.list_visitors() == []

    async def test_strips_full_name(self, memory_store: MemoryStore) -> None:
        record = await visitor_service.check_in(memory_store, _check_in_request(full_name="  Jane Doe "))
        assert record.full_name == "Jane Doe"

    async def test_requires_acting_identity(self, memory_store: MemoryStore) -> None:
        with pytest.raises(InputValidationError, match="recordedBy"):
            await visitor_service.check_in(memory_store, _check_in_request(recorded_by=None))

    async def test_signature_consent_requires_signature(self, memory_store: MemoryStore) -> None:
        with pytest.raises(InputValidationError, match="signature"):
            await visitor_service.check_in(memory_store, _check_in_request(consent_type=ConsentType.SIGNATURE))
        record = await visitor_service.check_in(
            memory_store,
            _check_in_request(consent_type=ConsentType.SIGNATURE, consent_signature="data:image/png;base64,AAAA"),
        )
        assert record.consent_type == ConsentType.SIGNATURE

    async def test_retries_on_record_id_collision(self, memory_store: MemoryStore, visitor_factory) -> None:
        await memory_store.add_visitor(visitor_factory("VMS-1-dup"))
        ids = iter(["VMS-1-dup", "VMS-2-fresh"])
        with patch.object(visitor_service, "generate_record_id", side_effect=lambda *_: next(ids)):
            record = await visitor_service.check_in(memory_store, _check_in_request())
        assert record.record_id == "VMS-2-fresh"

    async def test_gives_up_after_three_collisions(self, memory_store: MemoryStore, visitor_factory) -> None:
        await memory_store.add_visitor(visitor_factory("VMS-1-dup"))
        with (
            patch.object(visitor_service, "generate_record_id", return_value="VMS-1-dup") as mock_gen,
            pytest.raises(ConflictError),
        ):
            await visitor_service.check_in(memory_store, _check_in_request())
        assert mock_gen.call_count == 3

    async def test_concurrent_check_ins_get_unique_ids(self, memory_store: MemoryStore) -> None:
        records = await asyncio.gather(
            *(visitor_service.check_in(memory_store, _check_in_request(full_name=f"Guest {i}")) for i in range(1000))
        )
        assert len({r.record_id for r in records}) == 1000
        assert len(await memory_store.list_visitors()) == 1000

    async def test_audit_failure_does_not_fail_check_in(self, memory_store: MemoryStore) -> None:
        with patch.object(memory_store, "add_audit_log", AsyncMock(side_effect=StorageError())):
            record = await visitor_service.check_in(memory_store, _check_in_request())
        assert await memory_store.get_visitor(record.record_id) is not None


class TestSelfCheckIn:
    async def test_requires_consent(self, store: Store) -> None:
        request = SelfCheckInRequest(full_name="Somchai")
        with pytest.raises(InputValidationError, match="Consent is required to check in"):
            await visitor_service.self_check_in(store, request)
        assert await store.list_visitors() == []
        assert await store.list_audit_logs(limit=500) == []

    async def test_creates_self_record(self, store: Store) -> None:
        request = SelfCheckInRequest(
            full_name="Somchai",
            type=VisitorType.CONTRACTOR,
            locker_number="L-12",
            consent_accepted=True,
        )
        record = await visitor_service.self_check_in(store, request)
        assert record.record_id.startswith("SELF-")
        assert record.recorded_by == visitor_service.SELF_CHECKIN_ACTOR
        assert record.vehicle_plate == "L-12"
        assert record.type == VisitorType.CONTRACTOR
        assert record.consent_type == ConsentType.CHECKBOX
        entries = await _audit_for(store, record.record_id)
        assert [e.action for e in entries] == [AuditAction.SELF_CHECK_IN]

    async def test_requires_name(self, memory_store: MemoryStore) -> None:
        with pytest.raises(InputValidationError, match="Full name"):
            await visitor_service.self_check_in(memory_store, SelfCheckInRequest(consent_accepted=True))


class TestCheckOut:
    async def test_check_in_then_out(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        await visitor_service.check_out(store, record.record_id, "staff02")

        stored = await store.get_visitor(record.record_id)
        assert stored.status == VisitorStatus.OUT
        assert stored.check_out_time is not None
        assert stored.check_out_time >= stored.check_in_time
        active = await visitor_service.list_active_visitors(store)
        assert record.record_id not in {r.record_id for r in active}

        entries = await _audit_for(store, record.record_id)
        assert sorted(e.action for e in entries) == sorted([AuditAction.CHECK_IN, AuditAction.CHECK_OUT])

    async def test_second_check_out_is_rejected_and_time_unchanged(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        await visitor_service.check_out(store, record.record_id, "staff02")
        first = (await store.get_visitor(record.record_id)).check_out_time

        with pytest.raises(AlreadyCheckedOutError, match="already checked out"):
            await visitor_service.check_out(store, record.record_id, "staff02")
        assert (await store.get_visitor(record.record_id)).check_out_time == first
        assert len(await _audit_for(store, record.record_id)) == 2

    async def test_missing_record(self, store: Store) -> None:
        with pytest.raises(NotFoundError):
            await visitor_service.check_out(store, "VMS-0-missing", "staff02")

    async def test_check_out_time_never_precedes_check_in(self, memory_store: MemoryStore, visitor_factory) -> None:
        future = utcnow() + timedelta(hours=1)
        await memory_store.add_visitor(visitor_factory("VMS-1-skew", check_in_time=future))
        record = await visitor_service.check_out(memory_store, "VMS-1-skew", "staff02")
        assert record.check_out_time == future

    async def test_lost_race_reports_already_checked_out(self, memory_store: MemoryStore, visitor_factory) -> None:
        await memory_store.add_visitor(visitor_factory("VMS-1-race"))
        with (
            patch.object(memory_store, "mark_checked_out", AsyncMock(return_value=False)),
            pytest.raises(AlreadyCheckedOutError),
        ):
            await visitor_service.check_out(memory_store, "VMS-1-race", "staff02")

    async def test_concurrent_check_outs_one_winner(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        results = await asyncio.gather(
            *(visitor_service.check_out(store, record.record_id, f"staff{i}") for i in range(5)),
            return_exceptions=True,
        )
        assert sum(not isinstance(r, Exception) for r in results) == 1
        assert all(isinstance(r, AlreadyCheckedOutError) for r in results if isinstance(r, Exception))
        check_outs = [e for e in await _audit_for(store, record.record_id) if e.action == AuditAction.CHECK_OUT]
        assert len(check_outs) == 1


class TestForceCheckOut:
    async def test_records_reason(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        await visitor_service.force_check_out(store, record.record_id, "manager", "Left without checking out")

        assert (await store.get_visitor(record.record_id)).status == VisitorStatus.OUT
        entries = [e for e in await _audit_for(store, record.record_id) if e.action == AuditAction.FORCE_CHECK_OUT]
        assert len(entries) == 1
        assert entries[0].user_id == "manager"
        assert "Left without checking out" in entries[0].details

    async def test_rejects_already_out(self, memory_store: MemoryStore, visitor_factory) -> None:
        await memory_store.add_visitor(visitor_factory("VMS-1-out", status=VisitorStatus.OUT))
        with pytest.raises(AlreadyCheckedOutError):
            await visitor_service.force_check_out(memory_store, "VMS-1-out", "manager")


class TestCheckOutByToken:
    async def test_self_checkout(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        result = await visitor_service.check_out_by_token(store, record.qr_code)
        assert result.status == VisitorStatus.OUT
        assert result.full_name == "Jane Doe"
        entries = [e for e in await _audit_for(store, record.record_id) if e.action == AuditAction.CHECK_OUT]
        assert [e.user_id for e in entries] == [visitor_service.SELF_CHECKOUT_ACTOR]

    async def test_unknown_token(self, store: Store) -> None:
        with pytest.raises(NotFoundError, match="QR code not found"):
            await visitor_service.check_out_by_token(store, "VMS:nope:nope:0")

    async def test_expired_token(self, memory_store: MemoryStore, visitor_factory) -> None:
        await memory_store.add_visitor(
            visitor_factory("VMS-1-exp", qr_code="VMS:exp", qr_expiry=utcnow() - timedelta(minutes=1))
        )
        with pytest.raises(TokenExpiredError):
            await visitor_service.check_out_by_token(memory_store, "VMS:exp")
        assert (await memory_store.get_visitor("VMS-1-exp")).status == VisitorStatus.IN

    async def test_already_out(self, memory_store: MemoryStore, visitor_factory) -> None:
        await memory_store.add_visitor(visitor_factory("VMS-1-out", status=VisitorStatus.OUT, qr_code="VMS:out"))
        with pytest.raises(AlreadyCheckedOutError):
            await visitor_service.check_out_by_token(memory_store, "VMS:out")


class TestUpdateVisitor:
    async def test_applies_only_provided_fields(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request(phone="0800000000"))
        patch_ = VisitorPatch.model_validate({"company": "Globex", "notes": None})

        updated = await visitor_service.update_visitor(store, record.record_id, patch_, actor_id="staff02")

        assert updated.company == "Globex"
        assert updated.notes is None
        assert updated.phone == "0800000000"
        assert updated.full_name == "Jane Doe"
        assert updated.updated_at >= record.updated_at
        entries = [e for e in await _audit_for(store, record.record_id) if e.action == AuditAction.EDIT_RECORD]
        assert len(entries) == 1
        assert "company" in entries[0].details

    async def test_empty_patch_refreshes_updated_at(self, memory_store: MemoryStore, visitor_factory) -> None:
        old = utcnow() - timedelta(days=1)
        await memory_store.add_visitor(visitor_factory("VMS-1-a", updated_at=old))
        updated = await visitor_service.update_visitor(memory_store, "VMS-1-a", VisitorPatch(), actor_id="staff")
        assert updated.updated_at > old

    @pytest.mark.parametrize("payload", [{"fullName": ""}, {"fullName": None}, {"type": None}])
    async def test_rejects_clearing_required_fields(self, memory_store: MemoryStore, visitor_factory, payload) -> None:
        await memory_store.add_visitor(visitor_factory("VMS-1-a"))
        with pytest.raises(InputValidationError, match="cannot be empty"):
            await visitor_service.update_visitor(
                memory_store, "VMS-1-a", VisitorPatch.model_validate(payload), actor_id="staff"
            )

    async def test_missing_record(self, store: Store) -> None:
        with pytest.raises(NotFoundError):
            await visitor_service.update_visitor(store, "VMS-0-missing", VisitorPatch(company="x"), actor_id="staff")


class TestDeleteVisitor:
    async def test_delete_keeps_audit_trail(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        await visitor_service.delete_visitor(store, record.record_id, actor_id="manager")

        assert await store.get_visitor(record.record_id) is None
        assert record.record_id not in {r.record_id for r in await visitor_service.list_visitors(store)}
        actions = [e.action for e in await _audit_for(store, record.record_id)]
        assert sorted(actions) == sorted([AuditAction.CHECK_IN, AuditAction.DELETE_RECORD])
        deleted = [e for e in await _audit_for(store, record.record_id) if e.action == AuditAction.DELETE_RECORD]
        assert deleted[0].details == "Jane Doe record deleted"

    async def test_missing_record(self, store: Store) -> None:
        with pytest.raises(NotFoundError):
            await visitor_service.delete_visitor(store, "VMS-0-missing", actor_id="manager")


class TestDailyStats:
    async def test_counts_in_bangkok_calendar_day(self, memory_store: MemoryStore, visitor_factory) -> None:
        tz = ZoneInfo("Asia/Bangkok")
        day = date(2026, 3, 10)
        start, end = day_bounds(day, tz)
        yesterday = start - timedelta(hours=3)

        await memory_store.add_visitor(visitor_factory("R1", check_in_time=start))
        await memory_store.add_visitor(
            visitor_factory(
                "R2",
                status=VisitorStatus.OUT,
                check_in_time=start + timedelta(hours=1),
                check_out_time=start + timedelta(hours=2),
            )
        )
        await memory_store.add_visitor(visitor_factory("R3", check_in_time=yesterday))
        await memory_store.add_visitor(
            visitor_factory(
                "R4",
                status=VisitorStatus.OUT,
                check_in_time=yesterday,
                check_out_time=start + timedelta(minutes=5),
            )
        )
        await memory_store.add_visitor(visitor_factory("R5", check_in_time=end))

        stats = await visitor_service.compute_daily_stats(memory_store, day, tz)

        assert stats == visitor_service.DailyStats(today_in=2, today_out=2, pending=3)

    def test_summarize_empty(self) -> None:
        start, end = day_bounds(date(2026, 3, 10), UTC)
        assert visitor_service.summarize_day([], start, end) == visitor_service.DailyStats(0, 0, 0)


class TestAuditPairing:
    async def test_each_mutation_has_exactly_one_matching_entry(self, store: Store) -> None:
        record = await visitor_service.check_in(store, _check_in_request())
        await visitor_service.update_visitor(store, record.record_id, VisitorPatch(notes="VIP"), actor_id="staff")
        await visitor_service.check_out(store, record.record_id, "staff")
        await visitor_service.delete_visitor(store, record.record_id, actor_id="staff")

        actions = [e.action for e in await _audit_for(store, record.record_id)]
        assert sorted(actions) == sorted(
            [AuditAction.CHECK_IN, AuditAction.EDIT_RECORD, AuditAction.CHECK_OUT, AuditAction.DELETE_RECORD]
        )
