"""Error log service: operator-facing failure reports with a resolve lifecycle."""

from typing import Any

from loguru import logger

from visitor_api.core.clock import utcnow
from visitor_api.core.errors import NotFoundError, StorageError
from visitor_api.models.error_log import ErrorLog
from visitor_api.storage.base import Store

ERROR_LIST_LIMIT = 100


async def create_error_log(
    store: Store,
    *,
    type: str,  # noqa: A002
    message: str,
    source: str,
    metadata: Any | None = None,
) -> ErrorLog:
    """Record a failure report.

    Raises:
        StorageError: If the entry could not be durably written.
    """
    entry = ErrorLog(
        type=type,
        message=message,
        source=source,
        details=metadata,
        resolved=False,
        created_at=utcnow(),
    )
    stored = await store.add_error_log(entry)
    logger.info(f"Error log {stored.id} created ({type} from {source})")
    return stored


async def list_error_logs(store: Store, *, limit: int = ERROR_LIST_LIMIT) -> list[ErrorLog]:
    """Return the most recent error log entries, newest first."""
    return await store.list_error_logs(limit=limit)


async def list_unresolved_error_logs(store: Store) -> list[ErrorLog]:
    """Return all unresolved entries, newest first."""
    return await store.list_error_logs(unresolved_only=True)


async def resolve_error_log(store: Store, error_id: int, resolved_by: str) -> ErrorLog:
    """Mark an entry resolved.

    Idempotent: resolving an already-resolved entry re-stamps ``resolved_at``
    and ``resolved_by`` with the new values.

    Raises:
        NotFoundError: If no entry has the given id.
    """
    changed = await store.update_error_log(
        error_id,
        {"resolved": True, "resolved_at": utcnow(), "resolved_by": resolved_by},
    )
    if not changed:
        msg = f"Error log {error_id} not found"
        raise NotFoundError(msg)
    logger.info(f"Error log {error_id} resolved by {resolved_by}")
    entry = await store.get_error_log(error_id)
    if entry is None:
        msg = f"Error log {error_id} not found"
        raise NotFoundError(msg)
    return entry


async def record_system_error(store: Store, *, source: str, exc: BaseException) -> None:
    """Best-effort report of a failure detected while serving a request.

    Storage failures are the likely cause here, so a failed write is only logged.
    """
    error_type = "STORAGE_ERROR" if isinstance(exc, StorageError) else "INTERNAL_ERROR"
    try:
        await create_error_log(
            store,
            type=error_type,
            message=str(exc) or type(exc).__name__,
            source=source,
            metadata={"exception": type(exc).__name__, "cause": repr(exc.__cause__) if exc.__cause__ else None},
        )
    except Exception:
        logger.exception(f"Could not write error log for failure in {source}")
