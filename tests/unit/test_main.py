"""Tests for the FastAPI application factory module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from visitor_api.core.config import Settings
from visitor_api.main import create_app, lifespan
from visitor_api.storage import MemoryStore


class TestCreateApp:
    """Tests for create_app."""

    @pytest.fixture
    def app(self, settings: Settings):
        return create_app(settings)

    def test_app_is_created(self, app) -> None:
        assert app.title == "Visitor API"
        assert app.state.settings.trpc_prefix == "/api/trpc"

    def test_loads_settings_when_omitted(self, settings: Settings) -> None:
        with patch("visitor_api.main.get_settings", return_value=settings) as mock_get_settings:
            create_app()
        mock_get_settings.assert_called_once()

    def test_app_has_openapi_schema(self, app) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/openapi.json")
        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/trpc/visitors.checkIn" in paths
        assert "/api/trpc/stats.today" in paths
        assert "/health" in paths

    def test_startup_bootstraps_default_users(self, settings: Settings) -> None:
        settings.bootstrap_default_users = True
        with TestClient(create_app(settings)) as client:
            response = client.post("/api/trpc/appUsers.login", json={"username": "admin", "password": "admin123"})
            assert response.json()[0]["result"]["data"]["json"]["success"] is True

    def test_root_metadata(self, app) -> None:
        with TestClient(app) as client:
            body = client.get("/").json()
        assert body["name"] == "visitor-api"
        assert body["procedures"] == "/api/trpc"


class TestAppLifespan:
    """Tests for lifespan management."""

    async def test_lifespan_builds_and_releases_store(self, settings: Settings) -> None:
        store = MemoryStore()
        store.close = AsyncMock()
        app = MagicMock()
        app.state.settings = settings

        with (
            patch("visitor_api.main.setup_logging") as mock_setup_logging,
            patch("visitor_api.main.build_store", return_value=store) as mock_build_store,
            patch("visitor_api.main.ensure_default_users", new_callable=AsyncMock) as mock_bootstrap,
            patch("visitor_api.main.dispose_engine", new_callable=AsyncMock) as mock_dispose,
        ):
            async with lifespan(app):
                mock_setup_logging.assert_called_once_with(settings.log_level, log_dir=settings.log_dir)
                mock_build_store.assert_called_once_with(settings)
                assert app.state.store is store
                mock_bootstrap.assert_not_awaited()

            store.close.assert_awaited_once()
            mock_dispose.assert_awaited_once()

    async def test_lifespan_bootstraps_when_enabled(self, settings: Settings) -> None:
        settings.bootstrap_default_users = True
        app = MagicMock()
        app.state.settings = settings

        with (
            patch("visitor_api.main.setup_logging"),
            patch("visitor_api.main.ensure_default_users", new_callable=AsyncMock) as mock_bootstrap,
        ):
            async with lifespan(app):
                mock_bootstrap.assert_awaited_once_with(app.state.store)
