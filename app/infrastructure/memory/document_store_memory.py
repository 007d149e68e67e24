"""In-process DocumentStore. Holds JSON payloads and hands out fresh model instances."""

from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from app.governance.auditable import AuditableDocument
from app.governance.exceptions import DocumentNotFoundError

T = TypeVar("T", bound=AuditableDocument)


class InMemoryDocumentStore(Generic[T]):
    """Implements DocumentStore protocol for one model type."""

    def __init__(self, model: Type[T]) -> None:
        self._model = model
        self._payloads: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._payloads)

    def _load(self, payload: Mapping[str, Any]) -> T:
        return self._model.model_validate(payload)

    async def get(self, document_id: str, *, include_deleted: bool = False) -> Optional[T]:
        payload = self._payloads.get(document_id)
        if payload is None or (payload.get("is_deleted") and not include_deleted):
            return None
        return self._load(payload)

    async def find(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        include_deleted: bool = False,
        limit: Optional[int] = None,
        skip: int = 0,
    ) -> List[T]:
        matched = [
            p
            for p in self._payloads.values()
            if (include_deleted or not p.get("is_deleted"))
            and all(p.get(k) == v for k, v in (filters or {}).items())
        ]
        matched.sort(key=lambda p: p.get("created_at") or "", reverse=True)
        end = None if limit is None else skip + limit
        return [self._load(p) for p in matched[skip:end]]

    async def insert(self, document: T) -> T:
        if document.id in self._payloads:
            raise ValueError(f"Document {document.id} already exists")
        self._payloads[document.id] = document.to_payload()
        return self._load(self._payloads[document.id])

    async def replace(self, document: T) -> T:
        if document.id not in self._payloads:
            raise DocumentNotFoundError(f"Document {document.id} not found")
        self._payloads[document.id] = document.to_payload()
        return self._load(self._payloads[document.id])
