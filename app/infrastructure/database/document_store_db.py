"""DB-backed DocumentStore: one generic documents table, payload in JSONB."""

from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.governance.auditable import AUDIT_STAMP_FIELDS, AuditableDocument
from app.governance.exceptions import DocumentNotFoundError
from app.infrastructure.database.models import DocumentRow

T = TypeVar("T", bound=AuditableDocument)


def _column_values(document: AuditableDocument) -> Dict[str, Any]:
    values = {name: getattr(document, name) for name in AUDIT_STAMP_FIELDS}
    values["owner_id"] = getattr(document, "user_id", None)
    values["data"] = document.to_payload()
    return values


class DbDocumentStore(Generic[T]):
    """Implements DocumentStore for one document type."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model: Type[T],
        document_type: str,
    ) -> None:
        self._session_factory = session_factory
        self._model = model
        self._document_type = document_type

    def _scoped(self, include_deleted: bool):
        stmt = select(DocumentRow).where(DocumentRow.document_type == self._document_type)
        if not include_deleted:
            stmt = stmt.where(DocumentRow.is_deleted.is_(False))
        return stmt

    async def get(self, document_id: str, *, include_deleted: bool = False) -> Optional[T]:
        stmt = self._scoped(include_deleted).where(DocumentRow.id == document_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
            return self._model.model_validate(row.data) if row is not None else None

    async def find(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        include_deleted: bool = False,
        limit: Optional[int] = None,
        skip: int = 0,
    ) -> List[T]:
        stmt = self._scoped(include_deleted)
        if filters:
            stmt = stmt.where(DocumentRow.data.contains(dict(filters)))
        stmt = stmt.order_by(DocumentRow.created_at.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._model.model_validate(row.data) for row in result.scalars().all()]

    async def insert(self, document: T) -> T:
        values = _column_values(document)
        row = DocumentRow(id=document.id, document_type=self._document_type, **values)
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
        return self._model.model_validate(values["data"])

    async def replace(self, document: T) -> T:
        async with self._session_factory() as session:
            row = await session.get(DocumentRow, document.id)
            if row is None or row.document_type != self._document_type:
                raise DocumentNotFoundError(f"{self._document_type} {document.id} not found")
            values = _column_values(document)
            for name, value in values.items():
                setattr(row, name, value)
            await session.commit()
        return self._model.model_validate(values["data"])
