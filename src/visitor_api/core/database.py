"""Process-wide async engine for the SQL store.

``init_engine`` is called once by the app lifespan or a CLI command when
``DATABASE_URL`` is set; ``SqlStore`` then opens one session per operation
from ``get_session_factory()``.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(database_url: str, *, schema: str | None = None, **overrides: Any) -> dict[str, Any]:
    """Build ``create_async_engine`` keyword arguments for a URL.

    Args:
        database_url: Async SQLAlchemy connection string.
        schema: PostgreSQL schema placed first on the ``search_path``.
        **overrides: Caller-supplied engine arguments; these win over the defaults.

    Returns:
        Keyword arguments for ``create_async_engine``.
    """
    options = dict(overrides)
    is_sqlite = database_url.startswith("sqlite")

    if schema is not None:
        connect_args = options.pop("connect_args", {})
        if not isinstance(connect_args, dict):
            msg = "connect_args must be a dict"
            raise TypeError(msg)
        options["connect_args"] = {**connect_args, "server_settings": {"search_path": f"{schema},public"}}

    if not is_sqlite:
        options.setdefault("pool_size", 10)
        options.setdefault("max_overflow", 5)
        options.setdefault("pool_pre_ping", True)
    return options


def init_engine(database_url: str, *, schema: str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create the engine and session factory, replacing any previous ones."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_async_engine(database_url, **engine_options(database_url, schema=schema, **kwargs))
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory created by ``init_engine``.

    Raises:
        RuntimeError: If ``init_engine`` has not been called.
    """
    if _session_factory is None:
        msg = "Database is not configured. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


async def dispose_engine() -> None:
    """Close pooled connections; a no-op when no engine exists."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
