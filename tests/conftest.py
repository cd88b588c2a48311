"""Shared test fixtures: settings, both store implementations, and builders."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from visitor_api.core.clock import utcnow
from visitor_api.core.config import Settings
from visitor_api.core.database import engine_options
from visitor_api.models import VisitorRecord, VisitorStatus
from visitor_api.storage import MemoryStore, SqlStore
from visitor_api.storage.base import Store


@pytest.fixture
def settings() -> Settings:
    """Test application settings (in-memory store, no default users)."""
    return Settings(
        database_url=None,
        timezone="Asia/Bangkok",
        bootstrap_default_users=False,
        log_level="WARNING",
    )


@pytest.fixture
async def memory_store() -> AsyncGenerator[MemoryStore]:
    store = MemoryStore()
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def sql_store(tmp_path: Path) -> AsyncGenerator[SqlStore]:
    """SqlStore over a throwaway SQLite file, one connection per session."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'visitors.db'}"
    engine = create_async_engine(url, **engine_options(url))
    store = SqlStore(async_sessionmaker(engine, expire_on_commit=False))
    await store.initialize()
    yield store
    await engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest, memory_store: MemoryStore, sql_store: SqlStore) -> Store:
    """Each test using this fixture runs once per store implementation."""
    return memory_store if request.param == "memory" else sql_store


def make_visitor(
    record_id: str = "VMS-1-abcdefgh",
    *,
    full_name: str = "Jane Doe",
    status: VisitorStatus = VisitorStatus.IN,
    check_in_time: datetime | None = None,
    check_out_time: datetime | None = None,
    qr_code: str | None = None,
    qr_expiry: datetime | None = None,
    **overrides,
) -> VisitorRecord:
    """Build an unsaved visitor record with sensible defaults."""
    now = utcnow()
    check_in_time = check_in_time or now
    if status == VisitorStatus.OUT and check_out_time is None:
        check_out_time = check_in_time
    fields = {
        "record_id": record_id,
        "full_name": full_name,
        "type": "visitor",
        "status": status,
        "check_in_time": check_in_time,
        "check_out_time": check_out_time,
        "recorded_by": "staff",
        "consent_type": "checkbox",
        "consent_time": check_in_time,
        "qr_code": qr_code,
        "qr_expiry": qr_expiry if qr_expiry is not None else now + timedelta(hours=24),
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return VisitorRecord(**fields)


@pytest.fixture
def visitor_factory():
    """Return the unsaved-record builder."""
    return make_visitor
