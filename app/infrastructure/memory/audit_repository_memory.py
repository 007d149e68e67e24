"""In-process audit repository. Used by STORAGE_BACKEND=memory and in tests."""

from datetime import datetime
from typing import List

from app.governance.audit_models import AuditQuery, AuditRecord


class InMemoryAuditRepository:
    """Implements AuditRepository protocol over a list. Records are frozen dataclasses."""

    def __init__(self) -> None:
        self._records: List[AuditRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    async def save(self, record: AuditRecord) -> None:
        self._records.append(record)

    def _matching(self, query: AuditQuery) -> List[AuditRecord]:
        # Reversed first so that equal timestamps still come out newest-inserted first.
        matched = [r for r in reversed(self._records) if query.matches(r)]
        matched.sort(key=lambda r: r.performed_at, reverse=True)
        return matched

    async def find(self, query: AuditQuery, limit: int, skip: int = 0) -> List[AuditRecord]:
        return self._matching(query)[skip : skip + limit]

    async def count(self, query: AuditQuery) -> int:
        return len(self._matching(query))

    async def delete_older_than(self, cutoff: datetime) -> int:
        kept = [r for r in self._records if r.performed_at >= cutoff]
        removed = len(self._records) - len(kept)
        self._records = kept
        return removed
