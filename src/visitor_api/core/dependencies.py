"""FastAPI dependency injection for the active store and settings.

Both are created once in the application lifespan and kept on ``app.state``;
there is no per-request connection state.
"""

from typing import Annotated

from fastapi import Depends, Request

from visitor_api.core.config import Settings
from visitor_api.storage.base import Store


def get_store(request: Request) -> Store:
    """Return the store created at startup."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


StoreDep = Annotated[Store, Depends(get_store)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
