"""DB-backed version store over the document_versions table."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import defer

from app.governance.change_tracker import FieldChange
from app.governance.exceptions import VersionNumberConflictError
from app.governance.version_models import (
    ChangeType,
    DocumentVersion,
    RetentionPolicy,
    SnapshotInfo,
)
from app.infrastructure.database.models import DocumentVersionRow


def _to_version(row: DocumentVersionRow, include_data: bool = True) -> DocumentVersion:
    return DocumentVersion(
        version_id=row.version_id,
        document_id=row.document_id,
        document_type=row.document_type,
        version=row.version,
        change_type=ChangeType(row.change_type),
        snapshot=SnapshotInfo(
            size=row.snapshot_size,
            checksum=row.snapshot_checksum,
            compressed=row.snapshot_compressed,
        ),
        created_by=row.created_by,
        created_by_name=row.created_by_name,
        created_by_role=row.created_by_role,
        created_at=row.created_at,
        data=row.data if include_data else None,
        version_label=row.version_label,
        changes_summary=row.changes_summary,
        changed_fields=tuple(row.changed_fields or ()),
        diff=tuple(FieldChange(**c) for c in row.diff or ()),
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        backup_snapshot_id=row.backup_snapshot_id,
        restored_from=row.restored_from,
        restored_at=row.restored_at,
        restored_by=row.restored_by,
        tags=tuple(row.tags or ()),
        notes=row.notes,
        retention=RetentionPolicy(keep_forever=row.keep_forever, expires_at=row.expires_at),
    )


def _to_row(version: DocumentVersion) -> DocumentVersionRow:
    return DocumentVersionRow(
        version_id=version.version_id,
        document_id=version.document_id,
        document_type=version.document_type,
        version=version.version,
        change_type=version.change_type.value,
        data=version.data,
        snapshot_size=version.snapshot.size,
        snapshot_checksum=version.snapshot.checksum,
        snapshot_compressed=version.snapshot.compressed,
        created_by=version.created_by,
        created_by_name=version.created_by_name,
        created_by_role=version.created_by_role,
        created_at=version.created_at,
        version_label=version.version_label,
        changes_summary=version.changes_summary,
        changed_fields=list(version.changed_fields),
        diff=[c.to_dict() for c in version.diff],
        ip_address=version.ip_address,
        user_agent=version.user_agent,
        backup_snapshot_id=version.backup_snapshot_id,
        restored_from=version.restored_from,
        restored_at=version.restored_at,
        restored_by=version.restored_by,
        tags=list(version.tags),
        notes=version.notes,
        keep_forever=version.retention.keep_forever,
        expires_at=version.retention.expires_at,
    )


def _document_filter(document_id: str, document_type: str) -> tuple:
    return (
        DocumentVersionRow.document_id == document_id,
        DocumentVersionRow.document_type == document_type,
    )


class DbVersionRepository:
    """Implements VersionRepository protocol. The unique constraint arbitrates version-number races."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, version: DocumentVersion) -> None:
        async with self._session_factory() as session:
            session.add(_to_row(version))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise VersionNumberConflictError(
                    f"Version {version.version} of {version.document_type} "
                    f"{version.document_id} already exists"
                ) from e

    async def latest_version_number(self, document_id: str, document_type: str) -> int:
        stmt = select(func.max(DocumentVersionRow.version)).where(
            *_document_filter(document_id, document_type)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none() or 0

    async def list_for_document(
        self,
        document_id: str,
        document_type: str,
        *,
        limit: Optional[int] = None,
        skip: int = 0,
        include_data: bool = False,
    ) -> List[DocumentVersion]:
        stmt = (
            select(DocumentVersionRow)
            .where(*_document_filter(document_id, document_type))
            .order_by(DocumentVersionRow.version.desc())
            .offset(skip)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        if not include_data:
            stmt = stmt.options(defer(DocumentVersionRow.data))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_version(row, include_data) for row in result.scalars().all()]

    async def count_for_document(self, document_id: str, document_type: str) -> int:
        stmt = (
            select(func.count())
            .select_from(DocumentVersionRow)
            .where(*_document_filter(document_id, document_type))
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def get_by_id(self, version_id: str) -> Optional[DocumentVersion]:
        async with self._session_factory() as session:
            row = await session.get(DocumentVersionRow, version_id)
            return _to_version(row) if row is not None else None

    async def get_by_number(
        self, document_id: str, document_type: str, version: int
    ) -> Optional[DocumentVersion]:
        stmt = select(DocumentVersionRow).where(
            *_document_filter(document_id, document_type),
            DocumentVersionRow.version == version,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
            return _to_version(row) if row is not None else None

    async def mark_restored(
        self, version_id: str, restored_at: datetime, restored_by: Optional[str]
    ) -> None:
        stmt = (
            update(DocumentVersionRow)
            .where(DocumentVersionRow.version_id == version_id)
            .values(restored_at=restored_at, restored_by=restored_by)
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    async def delete_expired(
        self,
        now: datetime,
        *,
        document_id: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> int:
        stmt = delete(DocumentVersionRow).where(
            DocumentVersionRow.keep_forever.is_(False),
            DocumentVersionRow.expires_at.is_not(None),
            DocumentVersionRow.expires_at <= now,
        )
        if document_id is not None:
            stmt = stmt.where(DocumentVersionRow.document_id == document_id)
        if document_type is not None:
            stmt = stmt.where(DocumentVersionRow.document_type == document_type)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0
