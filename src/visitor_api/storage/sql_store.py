"""Durable store backed by async SQLAlchemy.

Each operation runs in its own short-lived session from the process-wide
session factory; there is no per-request connection state. Multi-statement
service operations are therefore not atomic as a group.
"""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy import delete, func, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from visitor_api.core.errors import ConflictError, StorageError
from visitor_api.models import AppSetting, AppUser, AuditLog, Base, ErrorLog, VisitorRecord, VisitorStatus

_ModelT = TypeVar("_ModelT", bound=Base)

_UPSERT_DIALECTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class SqlStore:
    """``Store`` implementation over a relational database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session, translating backend errors into the domain taxonomy."""
        try:
            async with self._session_factory() as session:
                yield session
        except IntegrityError as e:
            logger.warning(f"Uniqueness or integrity violation: {e.orig}")
            msg = "A record with the same unique value already exists"
            raise ConflictError(msg) from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Storage failure: {e}")
            raise StorageError from e

    async def _add(self, obj: _ModelT) -> _ModelT:
        async with self._session() as session:
            session.add(obj)
            await session.commit()
            return obj

    async def initialize(self) -> None:
        """Create all tables that do not exist yet."""
        async with self._session() as session:
            conn = await session.connection()
            await conn.run_sync(Base.metadata.create_all)
            await session.commit()
        logger.info("Database tables initialized")

    async def ping(self) -> None:
        async with self._session() as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        """No-op: the engine is owned by ``visitor_api.core.database``."""

    # ------------------------------------------------------------------
    # App users
    # ------------------------------------------------------------------

    async def add_user(self, user: AppUser) -> AppUser:
        return await self._add(user)

    async def get_user(self, user_id: int) -> AppUser | None:
        async with self._session() as session:
            return await session.get(AppUser, user_id)

    async def get_user_by_username(self, username: str) -> AppUser | None:
        async with self._session() as session:
            result = await session.execute(select(AppUser).where(AppUser.username == username))
            return result.scalar_one_or_none()

    async def list_users(self) -> list[AppUser]:
        async with self._session() as session:
            result = await session.execute(select(AppUser).order_by(AppUser.created_at.desc(), AppUser.id.desc()))
            return list(result.scalars().all())

    async def count_users(self) -> int:
        async with self._session() as session:
            return (await session.execute(select(func.count(AppUser.id)))).scalar_one()

    async def update_user(self, user_id: int, changes: Mapping[str, Any]) -> bool:
        async with self._session() as session:
            result = await session.execute(
                update(AppUser)
                .where(AppUser.id == user_id)
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount > 0

    async def delete_user(self, user_id: int) -> bool:
        async with self._session() as session:
            result = await session.execute(delete(AppUser).where(AppUser.id == user_id))
            await session.commit()
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Visitor records
    # ------------------------------------------------------------------

    async def add_visitor(self, record: VisitorRecord) -> VisitorRecord:
        return await self._add(record)

    async def get_visitor(self, record_id: str) -> VisitorRecord | None:
        async with self._session() as session:
            result = await session.execute(select(VisitorRecord).where(VisitorRecord.record_id == record_id))
            return result.scalar_one_or_none()

    async def get_visitor_by_qr(self, qr_code: str) -> VisitorRecord | None:
        async with self._session() as session:
            result = await session.execute(select(VisitorRecord).where(VisitorRecord.qr_code == qr_code))
            return result.scalar_one_or_none()

    async def list_visitors(self, *, status: str | None = None) -> list[VisitorRecord]:
        query = select(VisitorRecord)
        if status is not None:
            query = query.where(VisitorRecord.status == status)
        query = query.order_by(VisitorRecord.check_in_time.desc(), VisitorRecord.id.desc())
        async with self._session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def mark_checked_out(self, record_id: str, checked_out_at: datetime) -> bool:
        # Conditional write: only one concurrent caller can win the IN -> OUT transition.
        async with self._session() as session:
            result = await session.execute(
                update(VisitorRecord)
                .where(VisitorRecord.record_id == record_id, VisitorRecord.status == VisitorStatus.IN)
                .values(status=VisitorStatus.OUT, check_out_time=checked_out_at, updated_at=checked_out_at)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount == 1

    async def update_visitor(self, record_id: str, changes: Mapping[str, Any]) -> bool:
        async with self._session() as session:
            result = await session.execute(
                update(VisitorRecord)
                .where(VisitorRecord.record_id == record_id)
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount > 0

    async def delete_visitor(self, record_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(delete(VisitorRecord).where(VisitorRecord.record_id == record_id))
            await session.commit()
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Audit logs
    # ------------------------------------------------------------------

    async def add_audit_log(self, entry: AuditLog) -> AuditLog:
        return await self._add(entry)

    async def list_audit_logs(self, *, limit: int) -> list[AuditLog]:
        async with self._session() as session:
            result = await session.execute(
                select(AuditLog).order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit)
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_setting(self, key: str) -> AppSetting | None:
        async with self._session() as session:
            result = await session.execute(select(AppSetting).where(AppSetting.key == key))
            return result.scalar_one_or_none()

    async def list_settings(self) -> list[AppSetting]:
        async with self._session() as session:
            result = await session.execute(select(AppSetting).order_by(AppSetting.key))
            return list(result.scalars().all())

    async def upsert_setting(self, key: str, value: str | None, updated_at: datetime) -> None:
        async with self._session() as session:
            insert = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(AppSetting).values(key=key, value=value, updated_at=updated_at)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[AppSetting.key],
                    set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
                )
                await session.execute(stmt)
            else:
                existing = (
                    await session.execute(select(AppSetting).where(AppSetting.key == key))
                ).scalar_one_or_none()
                if existing is None:
                    session.add(AppSetting(key=key, value=value, updated_at=updated_at))
                else:
                    existing.value = value
                    existing.updated_at = updated_at
            await session.commit()

    # ------------------------------------------------------------------
    # Error logs
    # ------------------------------------------------------------------

    async def add_error_log(self, entry: ErrorLog) -> ErrorLog:
        return await self._add(entry)

    async def get_error_log(self, error_id: int) -> ErrorLog | None:
        async with self._session() as session:
            return await session.get(ErrorLog, error_id)

    async def list_error_logs(self, *, unresolved_only: bool = False, limit: int | None = None) -> list[ErrorLog]:
        query = select(ErrorLog)
        if unresolved_only:
            query = query.where(ErrorLog.resolved.is_(False))
        query = query.order_by(ErrorLog.created_at.desc(), ErrorLog.id.desc())
        if limit is not None:
            query = query.limit(limit)
        async with self._session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def update_error_log(self, error_id: int, changes: Mapping[str, Any]) -> bool:
        async with self._session() as session:
            result = await session.execute(
                update(ErrorLog)
                .where(ErrorLog.id == error_id)
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount > 0
