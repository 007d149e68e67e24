"""Base model for business entities under audit, with the who/when stamps they carry."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.governance.audit_context import AuditContext

CREATION_STAMP_FIELDS: FrozenSet[str] = frozenset(
    {"created_by", "created_at", "created_by_name", "created_by_role", "created_by_ip"}
)
UPDATE_STAMP_FIELDS: FrozenSet[str] = frozenset(
    {"updated_by", "updated_at", "updated_by_name", "updated_by_role", "updated_by_ip"}
)
DELETE_STAMP_FIELDS: FrozenSet[str] = frozenset(
    {"deleted_by", "deleted_at", "deleted_reason", "is_deleted"}
)
AUDIT_STAMP_FIELDS: FrozenSet[str] = CREATION_STAMP_FIELDS | UPDATE_STAMP_FIELDS | DELETE_STAMP_FIELDS

# Never overwritten when a stored version is merged back onto a live document.
PROTECTED_ON_RESTORE: FrozenSet[str] = frozenset({"id"}) | CREATION_STAMP_FIELDS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Current UTC time, nudged forward so it is strictly after previous."""
    now = utcnow()
    if previous is None:
        return now
    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class AuditableDocument(BaseModel):
    """
    Any entity under audit. created_at is set once and never changed; a soft-deleted
    document stays in storage with is_deleted set and is hidden from default queries.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by_name: Optional[str] = None
    created_by_role: Optional[str] = None
    created_by_ip: Optional[str] = None

    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by_name: Optional[str] = None
    updated_by_role: Optional[str] = None
    updated_by_ip: Optional[str] = None

    deleted_by: Optional[str] = None
    deleted_at: Optional[datetime] = None
    deleted_reason: Optional[str] = None
    is_deleted: bool = False

    @property
    def last_modified_at(self) -> Optional[datetime]:
        stamps = [t for t in (self.created_at, self.updated_at, self.deleted_at) if t is not None]
        return max(stamps) if stamps else None

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe snapshot of every field."""
        return self.model_dump(mode="json")

    def stamp_create(self, context: Optional[AuditContext], at: datetime) -> None:
        if context is not None:
            self.created_by = context.actor_id
            self.created_by_name = context.actor_name
            self.created_by_role = context.role
            self.created_by_ip = context.ip_address
        self.created_at = at

    def stamp_update(self, context: Optional[AuditContext], at: datetime) -> None:
        if context is not None:
            self.updated_by = context.actor_id
            self.updated_by_name = context.actor_name
            self.updated_by_role = context.role
            self.updated_by_ip = context.ip_address
        self.updated_at = at

    def stamp_delete(
        self, context: Optional[AuditContext], at: datetime, reason: Optional[str] = None
    ) -> None:
        if context is not None:
            self.deleted_by = context.actor_id
        self.deleted_reason = reason
        self.deleted_at = at
        self.is_deleted = True

    def clear_delete_stamps(self) -> None:
        self.deleted_by = None
        self.deleted_at = None
        self.deleted_reason = None
        self.is_deleted = False

    def carry_creation_stamps(self, persisted: "AuditableDocument") -> None:
        """Copy creation stamps from the stored state; they are immutable once set."""
        for name in CREATION_STAMP_FIELDS:
            setattr(self, name, getattr(persisted, name))


def merge_restored_payload(
    current: Mapping[str, Any], stored: Mapping[str, Any]
) -> Dict[str, Any]:
    """Shallow field replacement of current by stored, keeping identity and creation stamps."""
    merged = dict(current)
    for key, value in stored.items():
        if key in PROTECTED_ON_RESTORE:
            continue
        merged[key] = value
    return merged
