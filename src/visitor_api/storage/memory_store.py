"""In-memory fallback store, used only when no database URL is configured.

NOT FOR PRODUCTION USE - data is lost on restart.

Thread-safe: every read and write happens under a single ``threading.Lock``
and no awaits occur while it is held. Rows are copied on the way in and out so
callers never share mutable state with the store.
"""

from collections.abc import Mapping
from datetime import datetime
from itertools import count
from threading import Lock
from typing import Any, TypeVar

from sqlalchemy import inspect as sa_inspect

from visitor_api.core.errors import ConflictError
from visitor_api.models import AppSetting, AppUser, AuditLog, Base, ErrorLog, VisitorRecord, VisitorStatus

_ModelT = TypeVar("_ModelT", bound=Base)

_DUPLICATE_MSG = "A record with the same unique value already exists"


def _copy(obj: _ModelT) -> _ModelT:
    """Return a transient copy of a model instance's column values."""
    mapper = sa_inspect(type(obj))
    return type(obj)(**{attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs})


def _apply(obj: Base, changes: Mapping[str, Any]) -> None:
    columns = {attr.key for attr in sa_inspect(type(obj)).column_attrs}
    unknown = set(changes) - columns
    if unknown:
        msg = f"Unknown columns for {type(obj).__name__}: {sorted(unknown)}"
        raise ValueError(msg)
    for field, value in changes.items():
        setattr(obj, field, value)


class MemoryStore:
    """``Store`` implementation over process-local dictionaries."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._ids = {name: count(1) for name in ("users", "visitors", "audit", "settings", "errors")}
        self._users: dict[int, AppUser] = {}
        self._visitors: dict[str, VisitorRecord] = {}
        self._audit: list[AuditLog] = []
        self._settings: dict[str, AppSetting] = {}
        self._errors: dict[int, ErrorLog] = {}

    async def initialize(self) -> None:
        """Nothing to create."""

    async def ping(self) -> None:
        """Always reachable."""

    async def close(self) -> None:
        with self._lock:
            self._users.clear()
            self._visitors.clear()
            self._audit.clear()
            self._settings.clear()
            self._errors.clear()

    # ------------------------------------------------------------------
    # App users
    # ------------------------------------------------------------------

    async def add_user(self, user: AppUser) -> AppUser:
        with self._lock:
            if any(u.username == user.username for u in self._users.values()):
                raise ConflictError(_DUPLICATE_MSG)
            stored = _copy(user)
            stored.id = next(self._ids["users"])
            self._users[stored.id] = stored
            return _copy(stored)

    async def get_user(self, user_id: int) -> AppUser | None:
        with self._lock:
            user = self._users.get(user_id)
            return _copy(user) if user is not None else None

    async def get_user_by_username(self, username: str) -> AppUser | None:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return _copy(user)
            return None

    async def list_users(self) -> list[AppUser]:
        with self._lock:
            users = sorted(self._users.values(), key=lambda u: (u.created_at, u.id), reverse=True)
            return [_copy(u) for u in users]

    async def count_users(self) -> int:
        with self._lock:
            return len(self._users)

    async def update_user(self, user_id: int, changes: Mapping[str, Any]) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            new_username = changes.get("username")
            if new_username is not None and any(
                u.username == new_username and u.id != user_id for u in self._users.values()
            ):
                raise ConflictError(_DUPLICATE_MSG)
            _apply(user, changes)
            return True

    async def delete_user(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    # ------------------------------------------------------------------
    # Visitor records
    # ------------------------------------------------------------------

    async def add_visitor(self, record: VisitorRecord) -> VisitorRecord:
        with self._lock:
            if record.record_id in self._visitors:
                raise ConflictError(_DUPLICATE_MSG)
            if record.qr_code is not None and any(v.qr_code == record.qr_code for v in self._visitors.values()):
                raise ConflictError(_DUPLICATE_MSG)
            stored = _copy(record)
            stored.id = next(self._ids["visitors"])
            self._visitors[stored.record_id] = stored
            return _copy(stored)

    async def get_visitor(self, record_id: str) -> VisitorRecord | None:
        with self._lock:
            record = self._visitors.get(record_id)
            return _copy(record) if record is not None else None

    async def get_visitor_by_qr(self, qr_code: str) -> VisitorRecord | None:
        with self._lock:
            for record in self._visitors.values():
                if record.qr_code == qr_code:
                    return _copy(record)
            return None

    async def list_visitors(self, *, status: str | None = None) -> list[VisitorRecord]:
        with self._lock:
            records = [r for r in self._visitors.values() if status is None or r.status == status]
            records.sort(key=lambda r: (r.check_in_time, r.id), reverse=True)
            return [_copy(r) for r in records]

    async def mark_checked_out(self, record_id: str, checked_out_at: datetime) -> bool:
        with self._lock:
            record = self._visitors.get(record_id)
            if record is None or record.status != VisitorStatus.IN:
                return False
            record.status = VisitorStatus.OUT
            record.check_out_time = checked_out_at
            record.updated_at = checked_out_at
            return True

    async def update_visitor(self, record_id: str, changes: Mapping[str, Any]) -> bool:
        with self._lock:
            record = self._visitors.get(record_id)
            if record is None:
                return False
            _apply(record, changes)
            return True

    async def delete_visitor(self, record_id: str) -> bool:
        with self._lock:
            return self._visitors.pop(record_id, None) is not None

    # ------------------------------------------------------------------
    # Audit logs
    # ------------------------------------------------------------------

    async def add_audit_log(self, entry: AuditLog) -> AuditLog:
        with self._lock:
            stored = _copy(entry)
            stored.id = next(self._ids["audit"])
            self._audit.append(stored)
            return _copy(stored)

    async def list_audit_logs(self, *, limit: int) -> list[AuditLog]:
        with self._lock:
            entries = sorted(self._audit, key=lambda e: (e.timestamp, e.id), reverse=True)
            return [_copy(e) for e in entries[:limit]]

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_setting(self, key: str) -> AppSetting | None:
        with self._lock:
            setting = self._settings.get(key)
            return _copy(setting) if setting is not None else None

    async def list_settings(self) -> list[AppSetting]:
        with self._lock:
            return [_copy(s) for _, s in sorted(self._settings.items())]

    async def upsert_setting(self, key: str, value: str | None, updated_at: datetime) -> None:
        with self._lock:
            setting = self._settings.get(key)
            if setting is None:
                self._settings[key] = AppSetting(
                    id=next(self._ids["settings"]), key=key, value=value, updated_at=updated_at
                )
            else:
                setting.value = value
                setting.updated_at = updated_at

    # ------------------------------------------------------------------
    # Error logs
    # ------------------------------------------------------------------

    async def add_error_log(self, entry: ErrorLog) -> ErrorLog:
        with self._lock:
            stored = _copy(entry)
            stored.id = next(self._ids["errors"])
            self._errors[stored.id] = stored
            return _copy(stored)

    async def get_error_log(self, error_id: int) -> ErrorLog | None:
        with self._lock:
            entry = self._errors.get(error_id)
            return _copy(entry) if entry is not None else None

    async def list_error_logs(self, *, unresolved_only: bool = False, limit: int | None = None) -> list[ErrorLog]:
        with self._lock:
            entries = [e for e in self._errors.values() if not (unresolved_only and e.resolved)]
            entries.sort(key=lambda e: (e.created_at, e.id), reverse=True)
            if limit is not None:
                entries = entries[:limit]
            return [_copy(e) for e in entries]

    async def update_error_log(self, error_id: int, changes: Mapping[str, Any]) -> bool:
        with self._lock:
            entry = self._errors.get(error_id)
            if entry is None:
                return False
            _apply(entry, changes)
            return True
