"""Storage contract shared by the durable and in-memory stores.

Services depend only on :class:`Store`; the application wires exactly one
implementation at startup (``SqlStore`` when a database URL is configured,
``MemoryStore`` otherwise).

Conventions:
  - Rows are exchanged as ORM model instances. Instances returned by a store
    are detached snapshots; mutating them does not change stored state.
  - Identifier lookups return ``None`` when nothing matches; conditional writes
    return ``False`` when no row was changed. Stores never raise ``NotFoundError``.
  - Uniqueness violations raise ``ConflictError``; any other backend failure
    raises ``StorageError``.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

from visitor_api.models import AppSetting, AppUser, AuditLog, ErrorLog, VisitorRecord


class Store(Protocol):
    """Persistence operations for all five record types."""

    async def initialize(self) -> None:
        """Create the schema if it does not exist."""
        ...

    async def ping(self) -> None:
        """Raise ``StorageError`` if the store is unreachable."""
        ...

    async def close(self) -> None:
        """Release resources held by the store."""
        ...

    # App users
    async def add_user(self, user: AppUser) -> AppUser: ...

    async def get_user(self, user_id: int) -> AppUser | None: ...

    async def get_user_by_username(self, username: str) -> AppUser | None: ...

    async def list_users(self) -> list[AppUser]:
        """All users, newest first."""
        ...

    async def count_users(self) -> int: ...

    async def update_user(self, user_id: int, changes: Mapping[str, Any]) -> bool: ...

    async def delete_user(self, user_id: int) -> bool: ...

    # Visitor records
    async def add_visitor(self, record: VisitorRecord) -> VisitorRecord: ...

    async def get_visitor(self, record_id: str) -> VisitorRecord | None: ...

    async def get_visitor_by_qr(self, qr_code: str) -> VisitorRecord | None: ...

    async def list_visitors(self, *, status: str | None = None) -> list[VisitorRecord]:
        """Visitor records ordered by check-in time, newest first."""
        ...

    async def mark_checked_out(self, record_id: str, checked_out_at: datetime) -> bool:
        """Atomically move a record from IN to OUT.

        Returns:
            True if this call performed the transition, False if the record
            does not exist or was not IN.
        """
        ...

    async def update_visitor(self, record_id: str, changes: Mapping[str, Any]) -> bool: ...

    async def delete_visitor(self, record_id: str) -> bool: ...

    # Audit logs
    async def add_audit_log(self, entry: AuditLog) -> AuditLog: ...

    async def list_audit_logs(self, *, limit: int) -> list[AuditLog]:
        """Newest first."""
        ...

    # Settings
    async def get_setting(self, key: str) -> AppSetting | None: ...

    async def list_settings(self) -> list[AppSetting]: ...

    async def upsert_setting(self, key: str, value: str | None, updated_at: datetime) -> None: ...

    # Error logs
    async def add_error_log(self, entry: ErrorLog) -> ErrorLog: ...

    async def get_error_log(self, error_id: int) -> ErrorLog | None: ...

    async def list_error_logs(self, *, unresolved_only: bool = False, limit: int | None = None) -> list[ErrorLog]:
        """Newest first."""
        ...

    async def update_error_log(self, error_id: int, changes: Mapping[str, Any]) -> bool: ...
