"""Version store protocol. Governance layer depends on this; infrastructure implements it."""

from datetime import datetime
from typing import List, Optional, Protocol

from app.governance.version_models import DocumentVersion


class VersionRepository(Protocol):
    """Snapshot store keyed by (document_id, document_type, version)."""

    async def insert(self, version: DocumentVersion) -> None:
        """Persist a new version. Raises VersionNumberConflictError if the number is taken."""
        ...

    async def latest_version_number(self, document_id: str, document_type: str) -> int:
        """Highest version number for the document, 0 when none exist."""
        ...

    async def list_for_document(
        self,
        document_id: str,
        document_type: str,
        *,
        limit: Optional[int] = None,
        skip: int = 0,
        include_data: bool = False,
    ) -> List[DocumentVersion]:
        """Newest first by version number. data is None unless include_data."""
        ...

    async def count_for_document(self, document_id: str, document_type: str) -> int:
        ...

    async def get_by_id(self, version_id: str) -> Optional[DocumentVersion]:
        ...

    async def get_by_number(
        self, document_id: str, document_type: str, version: int
    ) -> Optional[DocumentVersion]:
        ...

    async def mark_restored(
        self, version_id: str, restored_at: datetime, restored_by: Optional[str]
    ) -> None:
        """The only mutation a version ever receives."""
        ...

    async def delete_expired(
        self,
        now: datetime,
        *,
        document_id: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> int:
        """Delete versions with keep_forever false and expires_at <= now."""
        ...
