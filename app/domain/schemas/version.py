"""Pydantic schemas for version store reads and restores."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.domain.schemas.audit import FieldChangeResponse
from app.governance.version_models import ChangeType


class SnapshotResponse(BaseModel):
    size: int
    checksum: str
    compressed: bool = False

    model_config = {"from_attributes": True}


class RetentionResponse(BaseModel):
    keep_forever: bool = False
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VersionSummaryResponse(BaseModel):
    version_id: str
    version: int
    created_at: datetime
    created_by_name: str
    change_type: ChangeType

    model_config = {"from_attributes": True}


class VersionResponse(BaseModel):
    version_id: str
    document_id: str
    document_type: str
    version: int
    change_type: ChangeType
    snapshot: SnapshotResponse
    created_by: Optional[str] = None
    created_by_name: str
    created_by_role: str
    created_at: datetime
    data: Optional[Dict[str, Any]] = None
    version_label: Optional[str] = None
    changes_summary: Optional[str] = None
    changed_fields: List[str] = Field(default_factory=list)
    diff: List[FieldChangeResponse] = Field(default_factory=list)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    backup_snapshot_id: Optional[str] = None
    restored_from: Optional[str] = None
    restored_at: Optional[datetime] = None
    restored_by: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    retention: RetentionResponse

    model_config = {"from_attributes": True}


class VersionHistoryResponse(BaseModel):
    versions: List[VersionResponse]
    total: int
    current_version: int

    model_config = {"from_attributes": True}


class VersionComparisonResponse(BaseModel):
    version_a: VersionSummaryResponse
    version_b: VersionSummaryResponse
    differences: List[FieldChangeResponse]

    model_config = {"from_attributes": True}


class RestoreResponse(BaseModel):
    message: str
    document: Dict[str, Any]


class CleanupRequest(BaseModel):
    document_id: Optional[str] = None
    document_type: Optional[str] = None


class CleanupResponse(BaseModel):
    deleted: int
    message: str
