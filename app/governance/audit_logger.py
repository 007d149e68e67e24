"""Immutable audit logging for change traceability. No FastAPI."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from app.core.context import correlation_id_ctx
from app.governance.audit_context import AuditContext
from app.governance.audit_models import AuditAction, AuditRecord
from app.governance.audit_repository import AuditRepository
from app.governance.change_tracker import FieldChange

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Writes immutable audit records via repository.
    Must include: who, what, when (UTC), why. Must NOT allow mutation.
    Raises on storage failure; callers decide whether the write is best-effort.
    """

    def __init__(self, repository: AuditRepository) -> None:
        self._repository = repository

    @property
    def repository(self) -> AuditRepository:
        return self._repository

    async def log_action(
        self,
        *,
        record_id: str,
        record_type: str,
        action: AuditAction,
        context: AuditContext,
        changes: Optional[Iterable[FieldChange]] = None,
        reason: Optional[str] = None,
    ) -> AuditRecord:
        """Write immutable audit record. Timestamp is UTC."""
        record = AuditRecord(
            entry_id=str(uuid.uuid4()),
            record_id=str(record_id),
            record_type=record_type,
            action=action,
            performed_by=context.actor_id,
            performed_by_name=context.actor_name,
            performed_by_role=context.role,
            performed_at=datetime.now(timezone.utc),
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            session_id=context.session_id,
            correlation_id=correlation_id_ctx.get(),
            changes=tuple(changes or ()),
            reason=reason,
        )
        await self._repository.save(record)
        logger.info(
            "audit_recorded",
            extra={
                "record_id": record.record_id,
                "record_type": record_type,
                "action": action.value,
                "change_count": len(record.changes),
            },
        )
        return record
