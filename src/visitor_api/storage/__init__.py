"""Storage backends behind the :class:`~visitor_api.storage.base.Store` contract."""

from loguru import logger

from visitor_api.core.config import Settings, is_sqlite_memory_url
from visitor_api.core.database import get_session_factory, init_engine
from visitor_api.storage.base import Store
from visitor_api.storage.memory_store import MemoryStore
from visitor_api.storage.sql_store import SqlStore

__all__ = ["MemoryStore", "SqlStore", "Store", "build_store"]


def build_store(settings: Settings) -> Store:
    """Create the store selected by configuration.

    A configured ``database_url`` selects the durable store and initializes the
    process-wide engine; otherwise the in-memory store is used. Never both.
    """
    if settings.database_url:
        if is_sqlite_memory_url(settings.database_url):
            msg = "In-memory SQLite cannot back the store; leave DATABASE_URL unset to use the in-memory store"
            raise ValueError(msg)
        init_engine(settings.database_url, schema=settings.database_schema)
        logger.info("Using database-backed store")
        return SqlStore(get_session_factory())
    logger.warning("DATABASE_URL is not set; using the in-memory store (data is lost on restart)")
    return MemoryStore()
