"""Public self check-in procedures used by the kiosk and web form."""

from fastapi import APIRouter

from visitor_api.api.trpc import TrpcInput, envelope
from visitor_api.core.dependencies import SettingsDep, StoreDep
from visitor_api.schemas.self_check_in import (
    ConsentResponse,
    SelfCheckInRecord,
    SelfCheckInRequest,
    SelfCheckInResponse,
    SelfCheckOutRequest,
    SelfCheckOutResponse,
)
from visitor_api.services import settings_service, visitor_service
from visitor_api.services.settings_service import SettingKey

self_check_in_router = APIRouter(tags=["selfCheckIn"])


@self_check_in_router.api_route("/selfCheckIn.getConsent", methods=["GET", "POST"])
async def get_consent(store: StoreDep) -> list:
    raw = await settings_service.get_setting(store, SettingKey.CONSENT_TEXT)
    return envelope(ConsentResponse(consent_text=settings_service.coerce_value(SettingKey.CONSENT_TEXT, raw)))


@self_check_in_router.post("/selfCheckIn.submit")
async def submit(payload: TrpcInput, store: StoreDep, settings: SettingsDep) -> list:
    """Self check-in; rejected unless ``consentAccepted`` is true."""
    body = SelfCheckInRequest.model_validate(payload)
    record = await visitor_service.self_check_in(store, body, qr_ttl_hours=settings.qr_ttl_hours)
    return envelope(
        SelfCheckInResponse(
            record_id=record.record_id,
            qr_code=record.qr_code,
            qr_data=record.qr_code,
            check_in_time=record.check_in_time,
        )
    )


@self_check_in_router.api_route("/selfCheckIn.getAll", methods=["GET", "POST"])
async def get_all(store: StoreDep) -> list:
    """Every record in the snake_case shape the web client reads."""
    records = await visitor_service.list_visitors(store)
    return envelope([SelfCheckInRecord.from_record(r) for r in records])


@self_check_in_router.post("/selfCheckIn.checkOut")
async def check_out(payload: TrpcInput, store: StoreDep) -> list:
    body = SelfCheckOutRequest.model_validate(payload)
    record = await visitor_service.check_out_by_token(store, body.qr_token)
    return envelope(SelfCheckOutResponse(full_name=record.full_name, check_out_time=record.check_out_time))
