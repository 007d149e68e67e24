"""Document version snapshots. Write-once except for restore stamps on a restore source."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from app.governance.change_tracker import FieldChange


class ChangeType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    RESTORED = "restored"
    SNAPSHOT = "snapshot"


@dataclass(frozen=True)
class SnapshotInfo:
    """Integrity metadata over the serialized payload."""

    size: int
    checksum: str
    compressed: bool = False


@dataclass(frozen=True)
class RetentionPolicy:
    keep_forever: bool = False
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return not self.keep_forever and self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True)
class DocumentVersion:
    """Full snapshot of one document at one point in time."""

    version_id: str
    document_id: str
    document_type: str
    version: int
    change_type: ChangeType
    snapshot: SnapshotInfo
    created_by: Optional[str]
    created_by_name: str
    created_by_role: str
    created_at: datetime
    data: Optional[Dict[str, Any]] = None
    version_label: Optional[str] = None
    changes_summary: Optional[str] = None
    changed_fields: Tuple[str, ...] = field(default_factory=tuple)
    diff: Tuple[FieldChange, ...] = field(default_factory=tuple)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    backup_snapshot_id: Optional[str] = None
    restored_from: Optional[str] = None
    restored_at: Optional[datetime] = None
    restored_by: Optional[str] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)
    notes: Optional[str] = None
    retention: RetentionPolicy = field(default_factory=RetentionPolicy)

    def summary(self) -> "VersionSummary":
        return VersionSummary(
            version_id=self.version_id,
            version=self.version,
            created_at=self.created_at,
            created_by_name=self.created_by_name,
            change_type=self.change_type,
        )


@dataclass(frozen=True)
class VersionSummary:
    version_id: str
    version: int
    created_at: datetime
    created_by_name: str
    change_type: ChangeType


@dataclass(frozen=True)
class VersionHistory:
    versions: List[DocumentVersion]
    total: int
    current_version: int


@dataclass(frozen=True)
class VersionComparison:
    version_a: VersionSummary
    version_b: VersionSummary
    differences: List[FieldChange]


@dataclass(frozen=True)
class CleanupResult:
    deleted: int

    @property
    def message(self) -> str:
        return f"Cleaned up {self.deleted} old versions"
