# app/infrastructure/database/models.py

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.database.session import Base


class AuditStampMixin:
    """Who/when columns mirrored from the document payload so they can be filtered and indexed."""

    created_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_by = Column(String, nullable=True)
    created_by_name = Column(String, nullable=True)
    created_by_role = Column(String, nullable=True)
    created_by_ip = Column(String, nullable=True)

    updated_at = Column(DateTime(timezone=True), nullable=True)
    updated_by = Column(String, nullable=True)
    updated_by_name = Column(String, nullable=True)
    updated_by_role = Column(String, nullable=True)
    updated_by_ip = Column(String, nullable=True)

    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String, nullable=True)
    deleted_reason = Column(Text, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)


class DocumentRow(AuditStampMixin, Base):
    """Live auditable documents, one row per document. data holds the full payload."""

    __tablename__ = "documents"

    id = Column(String, primary_key=True)
    document_type = Column(String, nullable=False, index=True)
    owner_id = Column(String, nullable=True, index=True)
    data = Column(JSONB, nullable=False)


class AuditLogEntryRow(Base):
    """Append-only audit log. Rows are inserted and purged by retention, never updated."""

    __tablename__ = "audit_log_entries"
    __table_args__ = (
        Index("ix_audit_record_time", "record_type", "record_id", "performed_at"),
        Index("ix_audit_actor_time", "performed_by", "performed_at"),
        Index("ix_audit_action_time", "action", "performed_at"),
    )

    entry_id = Column(String, primary_key=True)
    record_id = Column(String, nullable=False)
    record_type = Column(String, nullable=False)
    action = Column(String, nullable=False)
    performed_by = Column(String, nullable=False)
    performed_by_name = Column(String, nullable=False)
    performed_by_role = Column(String, nullable=False)
    performed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(Text, nullable=True)
    session_id = Column(String, nullable=True)
    correlation_id = Column(String, nullable=True)
    changes = Column(JSONB, nullable=False, default=list)
    reason = Column(Text, nullable=True)


class DocumentVersionRow(Base):
    """Full document snapshots. Unique per (document_id, document_type, version)."""

    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint(
            "document_id", "document_type", "version", name="uq_document_version_number"
        ),
        Index("ix_versions_document", "document_id", "document_type", "version"),
        Index("ix_versions_retention", "keep_forever", "expires_at"),
        Index("ix_versions_creator_time", "created_by", "created_at"),
    )

    version_id = Column(String, primary_key=True)
    document_id = Column(String, nullable=False)
    document_type = Column(String, nullable=False)
    version = Column(Integer, nullable=False)
    change_type = Column(String, nullable=False)
    data = Column(JSONB, nullable=False)

    snapshot_size = Column(Integer, nullable=False)
    snapshot_checksum = Column(String(64), nullable=False)
    snapshot_compressed = Column(Boolean, nullable=False, default=False)

    created_by = Column(String, nullable=True)
    created_by_name = Column(String, nullable=False)
    created_by_role = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    version_label = Column(String, nullable=True)
    changes_summary = Column(Text, nullable=True)
    changed_fields = Column(JSONB, nullable=False, default=list)
    diff = Column(JSONB, nullable=False, default=list)
    ip_address = Column(String, nullable=True)
    user_agent = Column(Text, nullable=True)

    backup_snapshot_id = Column(String, nullable=True)
    restored_from = Column(String, nullable=True)
    restored_at = Column(DateTime(timezone=True), nullable=True)
    restored_by = Column(String, nullable=True)

    tags = Column(JSONB, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    keep_forever = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
