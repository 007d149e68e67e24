"""Live document storage protocol and the type registry used to resolve restore targets."""

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, Protocol, Type, TypeVar

from app.governance.auditable import AuditableDocument
from app.governance.exceptions import UnknownDocumentTypeError

T = TypeVar("T", bound=AuditableDocument)


class DocumentStore(Protocol[T]):
    """Persistence for one document type. Implementations return fresh copies, never shared state."""

    async def get(self, document_id: str, *, include_deleted: bool = False) -> Optional[T]:
        ...

    async def find(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        include_deleted: bool = False,
        limit: Optional[int] = None,
        skip: int = 0,
    ) -> List[T]:
        """Equality match on top-level fields, newest created first."""
        ...

    async def insert(self, document: T) -> T:
        ...

    async def replace(self, document: T) -> T:
        """Overwrite the stored document with the same id. Raises DocumentNotFoundError if absent."""
        ...


@dataclass(frozen=True)
class RegisteredDocument(Generic[T]):
    document_type: str
    model: Type[T]
    store: DocumentStore


class DocumentRegistry:
    """Maps a document type name to its model class and live store."""

    def __init__(self) -> None:
        self._entries: Dict[str, RegisteredDocument] = {}

    def register(self, document_type: str, model: Type[AuditableDocument], store: DocumentStore) -> None:
        self._entries[document_type] = RegisteredDocument(
            document_type=document_type, model=model, store=store
        )

    def resolve(self, document_type: str) -> RegisteredDocument:
        entry = self._entries.get(document_type)
        if entry is None:
            raise UnknownDocumentTypeError(f"Unknown document type: {document_type}")
        return entry

    def __contains__(self, document_type: object) -> bool:
        return document_type in self._entries

    def document_types(self) -> List[str]:
        return sorted(self._entries)
