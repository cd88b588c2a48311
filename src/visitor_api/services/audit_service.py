"""Audit logging service.

Appends to the immutable audit trail. Appends are best-effort: they run after
the primary state mutation has been committed, and a failed append is logged
locally instead of failing the operation that triggered it.
"""

import enum

from loguru import logger

from visitor_api.core.clock import utcnow
from visitor_api.models.audit_log import AuditLog
from visitor_api.storage.base import Store

AUDIT_LIST_LIMIT = 500


class AuditAction(enum.StrEnum):
    """Tags for audited actions."""

    USER_LOGIN = "USER_LOGIN"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    CHECK_IN = "CHECK_IN"
    SELF_CHECK_IN = "SELF_CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    FORCE_CHECK_OUT = "FORCE_CHECK_OUT"
    EDIT_RECORD = "EDIT_RECORD"
    DELETE_RECORD = "DELETE_RECORD"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"


async def append_audit(
    store: Store,
    *,
    action: AuditAction,
    actor_id: str,
    record_id: str | None = None,
    details: str | None = None,
) -> AuditLog | None:
    """Append an audit entry without ever failing the caller.

    Args:
        store: The active store.
        action: The audited action tag.
        actor_id: Identity of the acting user or system component.
        record_id: Visitor record the action relates to, if any.
        details: Human-readable description.

    Returns:
        The stored entry, or None if the append failed.
    """
    entry = AuditLog(
        record_id=record_id,
        user_id=actor_id,
        action=action,
        details=details,
        timestamp=utcnow(),
    )
    try:
        return await store.add_audit_log(entry)
    except Exception:
        logger.exception(f"Failed to append audit entry {action} for record {record_id} by {actor_id}")
        return None


async def list_audit_logs(store: Store, *, limit: int = AUDIT_LIST_LIMIT) -> list[AuditLog]:
    """Return audit entries, newest first.

    Args:
        store: The active store.
        limit: Maximum number of entries (capped at 500).

    Returns:
        List of audit entries.
    """
    return await store.list_audit_logs(limit=min(limit, AUDIT_LIST_LIMIT))
