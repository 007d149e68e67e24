"""Audit repository protocol. Governance layer depends on this; infrastructure implements it."""

from datetime import datetime
from typing import List, Protocol

from app.governance.audit_models import AuditQuery, AuditRecord


class AuditRepository(Protocol):
    """Append-only store for audit records."""

    async def save(self, record: AuditRecord) -> None:
        """Persist an immutable audit record. Must not allow mutation."""
        ...

    async def find(self, query: AuditQuery, limit: int, skip: int = 0) -> List[AuditRecord]:
        """Matching records, newest first."""
        ...

    async def count(self, query: AuditQuery) -> int:
        ...

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Retention purge: drop records performed before cutoff. Returns count removed."""
        ...
