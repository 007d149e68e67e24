"""Domain schemas. Request/response and validation."""

from app.domain.schemas.audit import (
    AuditEntryResponse,
    AuditSearchRequest,
    AuditSearchResponse,
    AuditStatsResponse,
    FieldChangeResponse,
    RecentActivityResponse,
    UserActivityResponse,
)
from app.domain.schemas.booking import (
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
)
from app.domain.schemas.version import (
    CleanupRequest,
    CleanupResponse,
    RestoreResponse,
    VersionComparisonResponse,
    VersionHistoryResponse,
    VersionResponse,
    VersionSummaryResponse,
)

__all__ = [
    "AuditEntryResponse",
    "AuditSearchRequest",
    "AuditSearchResponse",
    "AuditStatsResponse",
    "BookingCreateRequest",
    "BookingResponse",
    "BookingUpdateRequest",
    "CleanupRequest",
    "CleanupResponse",
    "FieldChangeResponse",
    "RecentActivityResponse",
    "RestoreResponse",
    "UserActivityResponse",
    "VersionComparisonResponse",
    "VersionHistoryResponse",
    "VersionResponse",
    "VersionSummaryResponse",
]
