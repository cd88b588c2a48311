"""Staff visitor procedures: visitors.* and stats.today."""

from datetime import datetime

from fastapi import APIRouter

from visitor_api.api.trpc import TrpcInput, envelope
from visitor_api.core.dependencies import SettingsDep, StoreDep
from visitor_api.schemas.common import SuccessResponse
from visitor_api.schemas.visitor import (
    CheckInResponse,
    ForceCheckOutRequest,
    VisitorActionRequest,
    VisitorCheckInRequest,
    VisitorDetailResponse,
    VisitorPatch,
    VisitorRef,
    VisitorStatsResponse,
    VisitorSummaryResponse,
)
from visitor_api.services import visitor_service

visitors_router = APIRouter(tags=["visitors"])


@visitors_router.api_route("/visitors.list", methods=["GET", "POST"])
async def list_visitors(store: StoreDep) -> list:
    """All records, most recent check-in first. Media is reduced to presence flags."""
    records = await visitor_service.list_visitors(store)
    return envelope([VisitorSummaryResponse.from_record(r) for r in records])


@visitors_router.api_route("/visitors.active", methods=["GET", "POST"])
async def list_active_visitors(store: StoreDep) -> list:
    records = await visitor_service.list_active_visitors(store)
    return envelope([VisitorSummaryResponse.from_record(r) for r in records])


@visitors_router.api_route("/visitors.byId", methods=["GET", "POST"])
async def get_visitor(payload: TrpcInput, store: StoreDep) -> list:
    """Full record including media, or null when the id is unknown."""
    ref = VisitorRef.model_validate(payload)
    record = await visitor_service.get_visitor(store, ref.record_id)
    return envelope(VisitorDetailResponse.from_record(record) if record is not None else None)


@visitors_router.post("/visitors.checkIn")
async def check_in(payload: TrpcInput, store: StoreDep, settings: SettingsDep) -> list:
    body = VisitorCheckInRequest.model_validate(payload)
    record = await visitor_service.check_in(store, body, qr_ttl_hours=settings.qr_ttl_hours)
    return envelope(
        CheckInResponse(
            id=record.id,
            record_id=record.record_id,
            qr_code=record.qr_code,
            check_in_time=record.check_in_time,
        )
    )


@visitors_router.post("/visitors.checkOut")
async def check_out(payload: TrpcInput, store: StoreDep) -> list:
    body = VisitorActionRequest.model_validate(payload)
    await visitor_service.check_out(store, body.record_id, body.user_id)
    return envelope(SuccessResponse())


@visitors_router.post("/visitors.forceCheckOut")
async def force_check_out(payload: TrpcInput, store: StoreDep) -> list:
    body = ForceCheckOutRequest.model_validate(payload)
    await visitor_service.force_check_out(store, body.record_id, body.user_id, body.reason)
    return envelope(SuccessResponse())


@visitors_router.post("/visitors.update")
async def update_visitor(payload: TrpcInput, store: StoreDep) -> list:
    """Accepts the changed fields either flat or nested under ``data``."""
    ref = VisitorActionRequest.model_validate(payload)
    patch = VisitorPatch.model_validate(payload.get("data", payload))
    await visitor_service.update_visitor(store, ref.record_id, patch, actor_id=ref.user_id)
    return envelope(SuccessResponse())


@visitors_router.post("/visitors.delete")
async def delete_visitor(payload: TrpcInput, store: StoreDep) -> list:
    body = VisitorActionRequest.model_validate(payload)
    await visitor_service.delete_visitor(store, body.record_id, actor_id=body.user_id)
    return envelope(SuccessResponse())


@visitors_router.api_route("/visitors.stats", methods=["GET", "POST"])
@visitors_router.api_route("/stats.today", methods=["GET", "POST"])
async def stats_today(store: StoreDep, settings: SettingsDep) -> list:
    """Counters for the current calendar day in the configured timezone."""
    today = datetime.now(settings.tzinfo).date()
    stats = await visitor_service.compute_daily_stats(store, today, settings.tzinfo)
    return envelope(VisitorStatsResponse(today_in=stats.today_in, today_out=stats.today_out, pending=stats.pending))
