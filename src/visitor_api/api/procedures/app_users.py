"""Staff account procedures: appUsers.login/list/create/update/delete."""

from fastapi import APIRouter

from visitor_api.api.trpc import TrpcInput, envelope
from visitor_api.core.dependencies import StoreDep
from visitor_api.schemas.app_user import (
    AppUserCreateRequest,
    AppUserPatch,
    AppUserRef,
    AppUserResponse,
    LoginRequest,
    LoginResponse,
)
from visitor_api.schemas.common import CreatedResponse, FailureResponse, SuccessResponse
from visitor_api.services import app_user_service

app_users_router = APIRouter(tags=["appUsers"])


@app_users_router.post("/appUsers.login")
async def login(payload: TrpcInput, store: StoreDep) -> list:
    """Check a username and credential. Failed attempts are not audited."""
    body = LoginRequest.model_validate(payload)
    user = await app_user_service.authenticate(store, body.username, body.password)
    if user is None:
        return envelope(FailureResponse(error="Invalid username or password"))
    return envelope(LoginResponse(user=AppUserResponse.model_validate(user)))


@app_users_router.api_route("/appUsers.list", methods=["GET", "POST"])
async def list_users(store: StoreDep) -> list:
    users = await app_user_service.list_app_users(store)
    return envelope([AppUserResponse.model_validate(u) for u in users])


@app_users_router.post("/appUsers.create")
async def create_user(payload: TrpcInput, store: StoreDep) -> list:
    body = AppUserCreateRequest.model_validate(payload)
    user = await app_user_service.create_app_user(store, body, actor_id=body.user_id)
    return envelope(CreatedResponse(id=user.id))


@app_users_router.post("/appUsers.update")
async def update_user(payload: TrpcInput, store: StoreDep) -> list:
    """Partial update; only the provided fields change."""
    ref = AppUserRef.model_validate(payload)
    patch = AppUserPatch.model_validate(payload.get("data", payload))
    await app_user_service.update_app_user(store, ref.id, patch, actor_id=ref.user_id)
    return envelope(SuccessResponse())


@app_users_router.post("/appUsers.delete")
async def delete_user(payload: TrpcInput, store: StoreDep) -> list:
    ref = AppUserRef.model_validate(payload)
    await app_user_service.delete_app_user(store, ref.id, actor_id=ref.user_id)
    return envelope(SuccessResponse())
