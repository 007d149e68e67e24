"""Immutable audit record model. Domain-level immutability."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from app.governance.change_tracker import FieldChange


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"


@dataclass(frozen=True)
class AuditRecord:
    """
    One action against one record: who, what, when (UTC), why.
    Append-only; never mutated once written.
    """

    entry_id: str
    record_id: str
    record_type: str
    action: AuditAction
    performed_by: str
    performed_by_name: str
    performed_by_role: str
    performed_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    session_id: Optional[str] = None
    correlation_id: Optional[str] = None
    changes: Tuple[FieldChange, ...] = field(default_factory=tuple)
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging and responses."""
        return {
            "entry_id": self.entry_id,
            "record_id": self.record_id,
            "record_type": self.record_type,
            "action": self.action.value,
            "performed_by": self.performed_by,
            "performed_by_name": self.performed_by_name,
            "performed_by_role": self.performed_by_role,
            "performed_at": self.performed_at.isoformat(),
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "session_id": self.session_id,
            "correlation_id": self.correlation_id,
            "changes": [c.to_dict() for c in self.changes],
            "reason": self.reason,
        }


@dataclass(frozen=True)
class AuditQuery:
    """Filters for reading the audit log. Unset fields do not constrain."""

    record_id: Optional[str] = None
    record_type: Optional[str] = None
    action: Optional[AuditAction] = None
    performed_by: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    changed_field: Optional[str] = None

    def __post_init__(self) -> None:
        # Stored timestamps are UTC-aware; a bound without a zone is read as UTC.
        for name in ("start", "end"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                object.__setattr__(self, name, value.replace(tzinfo=timezone.utc))

    def matches(self, record: AuditRecord) -> bool:
        if self.record_id is not None and record.record_id != self.record_id:
            return False
        if self.record_type is not None and record.record_type != self.record_type:
            return False
        if self.action is not None and record.action != self.action:
            return False
        if self.performed_by is not None and record.performed_by != self.performed_by:
            return False
        if self.start is not None and record.performed_at < self.start:
            return False
        if self.end is not None and record.performed_at > self.end:
            return False
        if self.changed_field is not None and not any(
            c.field == self.changed_field for c in record.changes
        ):
            return False
        return True
