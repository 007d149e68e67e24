"""Governance: audit context, change tracking, audit log, version store, retention. No FastAPI."""

from app.governance.audit_context import AuditContext
from app.governance.audit_interceptor import AuditedCollection, attach_audit
from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditAction, AuditQuery, AuditRecord
from app.governance.audit_query_service import AuditQueryService
from app.governance.auditable import AuditableDocument
from app.governance.change_tracker import FieldChange, diff
from app.governance.document_store import DocumentRegistry
from app.governance.retention import RetentionSweeper
from app.governance.version_models import ChangeType, DocumentVersion
from app.governance.versioning_service import VersioningService

__all__ = [
    "AuditAction",
    "AuditContext",
    "AuditLogger",
    "AuditQuery",
    "AuditQueryService",
    "AuditRecord",
    "AuditableDocument",
    "AuditedCollection",
    "ChangeType",
    "DocumentRegistry",
    "DocumentVersion",
    "FieldChange",
    "RetentionSweeper",
    "VersioningService",
    "attach_audit",
    "diff",
]
