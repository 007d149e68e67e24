"""DB-backed audit repository. Appends to and reads from the audit_log_entries table."""

from datetime import datetime
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.governance.audit_models import AuditAction, AuditQuery, AuditRecord
from app.governance.change_tracker import FieldChange
from app.infrastructure.database.models import AuditLogEntryRow


def _conditions(query: AuditQuery) -> list:
    conditions = []
    if query.record_id is not None:
        conditions.append(AuditLogEntryRow.record_id == query.record_id)
    if query.record_type is not None:
        conditions.append(AuditLogEntryRow.record_type == query.record_type)
    if query.action is not None:
        conditions.append(AuditLogEntryRow.action == query.action.value)
    if query.performed_by is not None:
        conditions.append(AuditLogEntryRow.performed_by == query.performed_by)
    if query.start is not None:
        conditions.append(AuditLogEntryRow.performed_at >= query.start)
    if query.end is not None:
        conditions.append(AuditLogEntryRow.performed_at <= query.end)
    if query.changed_field is not None:
        conditions.append(AuditLogEntryRow.changes.contains([{"field": query.changed_field}]))
    return conditions


def _to_record(row: AuditLogEntryRow) -> AuditRecord:
    return AuditRecord(
        entry_id=row.entry_id,
        record_id=row.record_id,
        record_type=row.record_type,
        action=AuditAction(row.action),
        performed_by=row.performed_by,
        performed_by_name=row.performed_by_name,
        performed_by_role=row.performed_by_role,
        performed_at=row.performed_at,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        session_id=row.session_id,
        correlation_id=row.correlation_id,
        changes=tuple(FieldChange(**c) for c in row.changes or ()),
        reason=row.reason,
    )


class DbAuditRepository:
    """Implements AuditRepository protocol. One session per call; rows are never updated."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, record: AuditRecord) -> None:
        row = AuditLogEntryRow(
            entry_id=record.entry_id,
            record_id=record.record_id,
            record_type=record.record_type,
            action=record.action.value,
            performed_by=record.performed_by,
            performed_by_name=record.performed_by_name,
            performed_by_role=record.performed_by_role,
            performed_at=record.performed_at,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            session_id=record.session_id,
            correlation_id=record.correlation_id,
            changes=[c.to_dict() for c in record.changes],
            reason=record.reason,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()

    async def find(self, query: AuditQuery, limit: int, skip: int = 0) -> List[AuditRecord]:
        stmt = (
            select(AuditLogEntryRow)
            .where(*_conditions(query))
            .order_by(AuditLogEntryRow.performed_at.desc())
            .offset(skip)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_record(row) for row in result.scalars().all()]

    async def count(self, query: AuditQuery) -> int:
        stmt = select(func.count()).select_from(AuditLogEntryRow).where(*_conditions(query))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def delete_older_than(self, cutoff: datetime) -> int:
        stmt = delete(AuditLogEntryRow).where(AuditLogEntryRow.performed_at < cutoff)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0
