"""In-process version store. Enforces the same uniqueness rule as the document_versions table."""

import dataclasses
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from app.governance.exceptions import VersionNumberConflictError
from app.governance.version_models import DocumentVersion


class InMemoryVersionRepository:
    """Implements VersionRepository protocol."""

    def __init__(self) -> None:
        self._by_id: Dict[str, DocumentVersion] = {}
        self._numbers: Dict[Tuple[str, str, int], str] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    async def insert(self, version: DocumentVersion) -> None:
        key = (version.document_id, version.document_type, version.version)
        if key in self._numbers:
            raise VersionNumberConflictError(
                f"Version {version.version} of {version.document_type} "
                f"{version.document_id} already exists"
            )
        self._numbers[key] = version.version_id
        self._by_id[version.version_id] = version

    def _for_document(self, document_id: str, document_type: str) -> List[DocumentVersion]:
        return [
            v
            for v in self._by_id.values()
            if v.document_id == document_id and v.document_type == document_type
        ]

    async def latest_version_number(self, document_id: str, document_type: str) -> int:
        return max((v.version for v in self._for_document(document_id, document_type)), default=0)

    async def list_for_document(
        self,
        document_id: str,
        document_type: str,
        *,
        limit: Optional[int] = None,
        skip: int = 0,
        include_data: bool = False,
    ) -> List[DocumentVersion]:
        versions = sorted(
            self._for_document(document_id, document_type),
            key=lambda v: v.version,
            reverse=True,
        )
        end = None if limit is None else skip + limit
        page = versions[skip:end]
        if include_data:
            return page
        return [dataclasses.replace(v, data=None) for v in page]

    async def count_for_document(self, document_id: str, document_type: str) -> int:
        return len(self._for_document(document_id, document_type))

    async def get_by_id(self, version_id: str) -> Optional[DocumentVersion]:
        return self._by_id.get(version_id)

    async def get_by_number(
        self, document_id: str, document_type: str, version: int
    ) -> Optional[DocumentVersion]:
        version_id = self._numbers.get((document_id, document_type, version))
        return self._by_id.get(version_id) if version_id else None

    async def mark_restored(
        self, version_id: str, restored_at: datetime, restored_by: Optional[str]
    ) -> None:
        current = self._by_id.get(version_id)
        if current is not None:
            self._by_id[version_id] = dataclasses.replace(
                current, restored_at=restored_at, restored_by=restored_by
            )

    async def delete_expired(
        self,
        now: datetime,
        *,
        document_id: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> int:
        doomed = [
            v
            for v in self._by_id.values()
            if v.retention.is_expired(now)
            and (document_id is None or v.document_id == document_id)
            and (document_type is None or v.document_type == document_type)
        ]
        for v in doomed:
            del self._by_id[v.version_id]
            del self._numbers[(v.document_id, v.document_type, v.version)]
        return len(doomed)
