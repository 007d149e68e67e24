"""Pydantic schemas for audit log reads."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.governance.audit_models import AuditAction


class FieldChangeResponse(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None

    model_config = {"from_attributes": True}


class AuditEntryResponse(BaseModel):
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
    changes: List[FieldChangeResponse] = Field(default_factory=list)
    reason: Optional[str] = None

    model_config = {"from_attributes": True}


class AuditSearchRequest(BaseModel):
    record_type: Optional[str] = None
    action: Optional[AuditAction] = None
    performed_by: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search_field: Optional[str] = Field(None, description="Only entries whose changes touch this field")
    limit: int = Field(100, ge=1, le=1000)
    skip: int = Field(0, ge=0)


class AuditSearchResponse(BaseModel):
    entries: List[AuditEntryResponse]
    total: int
    page: int
    total_pages: int


class RecentActivityResponse(BaseModel):
    start: datetime
    end: datetime
    entries: List[AuditEntryResponse]
    stats: Dict[str, Any]


class AuditStatsResponse(BaseModel):
    days: int
    daily: List[Dict[str, Any]]
    top_users: List[Dict[str, Any]]


class UserActivityResponse(BaseModel):
    entries: List[AuditEntryResponse]
    grouped_by_type: Dict[str, List[AuditEntryResponse]]
