"""Application settings procedures: settings.get/update."""

from fastapi import APIRouter

from visitor_api.api.trpc import TrpcInput, envelope
from visitor_api.core.dependencies import StoreDep
from visitor_api.schemas.common import SuccessResponse
from visitor_api.schemas.settings import SettingsUpdateRequest
from visitor_api.services import settings_service

settings_router = APIRouter(tags=["settings"])


@settings_router.api_route("/settings.get", methods=["GET", "POST"])
async def get_settings(store: StoreDep) -> list:
    """Every well-known key with defaults applied, plus any other stored keys."""
    return envelope(await settings_service.get_all_settings(store))


@settings_router.post("/settings.update")
async def update_settings(payload: TrpcInput, store: StoreDep) -> list:
    body = SettingsUpdateRequest.model_validate(payload)
    await settings_service.update_settings(store, body.changes(), actor_id=body.user_id)
    return envelope(SuccessResponse())
