"""Fixtures for API tests: the full app wired to a test store, plus call helpers."""

import json
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from visitor_api.core.config import Settings
from visitor_api.main import create_app
from visitor_api.services.app_user_service import ensure_default_users
from visitor_api.storage.base import Store

PREFIX = "/api/trpc"


class TrpcClient:
    """Thin wrapper that speaks the batch envelope and returns the unwrapped payload."""

    def __init__(self, client: AsyncClient) -> None:
        self.http = client

    async def mutate(self, procedure: str, data: dict[str, Any] | None = None) -> Any:
        response = await self.http.post(f"{PREFIX}/{procedure}", json={"0": {"json": data or {}}})
        assert response.status_code == 200, response.text
        return response.json()[0]["result"]["data"]["json"]

    async def query(self, procedure: str, data: dict[str, Any] | None = None) -> Any:
        params = {"input": json.dumps({"0": {"json": data}})} if data is not None else None
        response = await self.http.get(f"{PREFIX}/{procedure}", params=params)
        assert response.status_code == 200, response.text
        return response.json()[0]["result"]["data"]["json"]


@pytest.fixture
async def api(settings: Settings, store: Store) -> AsyncGenerator[TrpcClient]:
    """Client for the full application, once per store implementation."""
    app = create_app(settings)
    app.state.store = store
    await ensure_default_users(store)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield TrpcClient(client)
