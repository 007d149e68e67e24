"""
Version store operations: snapshot, history, point lookup, restore-to-version,
comparison and retention cleanup. No FastAPI.

Version numbers are allocated as latest + 1 and guarded by the storage unique
constraint on (document_id, document_type, version); a lost race is retried.
"""

import hashlib
import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from app.governance.alerts import (
    CHANNEL_AUDIT_LOG,
    CHANNEL_VERSION_STORE,
    FailureNotifier,
    SideChannelFailure,
    report_side_channel_failure,
)
from app.governance.audit_context import SYSTEM_ACTOR_NAME, SYSTEM_ROLE, AuditContext
from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditAction
from app.governance.auditable import (
    AuditableDocument,
    merge_restored_payload,
    next_timestamp,
    utcnow,
)
from app.governance.change_tracker import FieldChange, diff
from app.governance.document_store import DocumentRegistry
from app.governance.exceptions import (
    DocumentNotFoundError,
    RestoreFailedError,
    VersionMismatchError,
    VersionNotFoundError,
    VersionNumberConflictError,
)
from app.governance.version_models import (
    ChangeType,
    CleanupResult,
    DocumentVersion,
    RetentionPolicy,
    SnapshotInfo,
    VersionComparison,
    VersionHistory,
)
from app.governance.version_repository import VersionRepository

logger = logging.getLogger(__name__)


def serialize_payload(payload: Any) -> str:
    """Canonical JSON: sorted keys, no whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def snapshot_info(payload: Any) -> SnapshotInfo:
    serialized = serialize_payload(payload).encode("utf-8")
    return SnapshotInfo(size=len(serialized), checksum=hashlib.sha256(serialized).hexdigest())


def _payload_of(document: Any) -> dict:
    if isinstance(document, AuditableDocument):
        return document.to_payload()
    return dict(document)


class VersioningService:
    """
    Writes and reads full document snapshots.
    create_version is best-effort: failures are reported and None is returned.
    restore_version is not: any failure after the target is loaded raises RestoreFailedError.
    """

    def __init__(
        self,
        repository: VersionRepository,
        registry: Optional[DocumentRegistry] = None,
        *,
        audit_logger: Optional[AuditLogger] = None,
        retention_days: int = 365,
        max_allocation_retries: int = 3,
        notifier: Optional[FailureNotifier] = None,
        metrics: Any = None,
    ) -> None:
        self._repository = repository
        self._registry = registry or DocumentRegistry()
        self._audit_logger = audit_logger
        self._retention_days = retention_days
        self._max_retries = max(1, max_allocation_retries)
        self._notifier = notifier
        self._metrics = metrics

    @property
    def registry(self) -> DocumentRegistry:
        return self._registry

    def _retention(self, keep_forever: bool) -> RetentionPolicy:
        if keep_forever or self._retention_days <= 0:
            return RetentionPolicy(keep_forever=keep_forever)
        return RetentionPolicy(expires_at=utcnow() + timedelta(days=self._retention_days))

    async def _write_version(
        self,
        document: Any,
        change_type: ChangeType,
        context: Optional[AuditContext],
        *,
        document_type: str,
        version_label: Optional[str] = None,
        changes_summary: Optional[str] = None,
        changed_fields: Optional[Iterable[str]] = None,
        diff_entries: Optional[Iterable[FieldChange]] = None,
        tags: Iterable[str] = (),
        notes: Optional[str] = None,
        backup_snapshot_id: Optional[str] = None,
        keep_forever: bool = False,
        restored_from: Optional[str] = None,
        restored_at=None,
        restored_by: Optional[str] = None,
    ) -> DocumentVersion:
        payload = _payload_of(document)
        document_id = str(payload["id"])
        info = snapshot_info(payload)
        diff_tuple = tuple(diff_entries or ())
        fields = tuple(changed_fields) if changed_fields is not None else tuple(c.field for c in diff_tuple)

        for attempt in range(1, self._max_retries + 1):
            number = await self._repository.latest_version_number(document_id, document_type) + 1
            version = DocumentVersion(
                version_id=str(uuid.uuid4()),
                document_id=document_id,
                document_type=document_type,
                version=number,
                change_type=change_type,
                snapshot=info,
                created_by=context.actor_id if context else None,
                created_by_name=context.actor_name if context else SYSTEM_ACTOR_NAME,
                created_by_role=context.role if context else SYSTEM_ROLE,
                created_at=utcnow(),
                data=payload,
                version_label=version_label,
                changes_summary=changes_summary,
                changed_fields=fields,
                diff=diff_tuple,
                ip_address=context.ip_address if context else None,
                user_agent=context.user_agent if context else None,
                backup_snapshot_id=backup_snapshot_id,
                restored_from=restored_from,
                restored_at=restored_at,
                restored_by=restored_by,
                tags=tuple(tags),
                notes=notes,
                retention=self._retention(keep_forever),
            )
            try:
                await self._repository.insert(version)
            except VersionNumberConflictError:
                logger.warning(
                    "version_number_conflict",
                    extra={
                        "document_id": document_id,
                        "document_type": document_type,
                        "version": number,
                        "attempt": attempt,
                    },
                )
                if attempt == self._max_retries:
                    raise
                continue
            logger.info(
                "version_created",
                extra={
                    "document_id": document_id,
                    "document_type": document_type,
                    "version": number,
                    "change_type": change_type.value,
                },
            )
            if self._metrics is not None:
                self._metrics.increment("versions_created", record_type=document_type)
            return version
        raise VersionNumberConflictError(f"Could not allocate a version number for {document_id}")

    async def create_version(
        self,
        document: Any,
        change_type: ChangeType,
        context: Optional[AuditContext] = None,
        *,
        document_type: Optional[str] = None,
        **options: Any,
    ) -> Optional[DocumentVersion]:
        """Snapshot the document. Never raises; returns None when the write failed."""
        doc_type = document_type or type(document).__name__
        try:
            return await self._write_version(
                document, change_type, context, document_type=doc_type, **options
            )
        except Exception as e:
            payload_id = getattr(document, "id", None)
            if payload_id is None and isinstance(document, dict):
                payload_id = document.get("id")
            await report_side_channel_failure(
                SideChannelFailure.from_exception(
                    channel=CHANNEL_VERSION_STORE,
                    operation=change_type.value,
                    record_type=doc_type,
                    record_id=payload_id,
                    error=e,
                ),
                notifier=self._notifier,
                metrics=self._metrics,
            )
            return None

    async def get_version_history(
        self,
        document_id: str,
        document_type: str,
        *,
        limit: Optional[int] = None,
        skip: int = 0,
        include_data: bool = False,
    ) -> VersionHistory:
        versions = await self._repository.list_for_document(
            document_id, document_type, limit=limit, skip=skip, include_data=include_data
        )
        total = await self._repository.count_for_document(document_id, document_type)
        current = await self._repository.latest_version_number(document_id, document_type)
        return VersionHistory(versions=versions, total=total, current_version=current)

    async def get_version(self, document_id: str, document_type: str, version: int) -> DocumentVersion:
        found = await self._repository.get_by_number(document_id, document_type, version)
        if found is None:
            raise VersionNotFoundError(f"Version {version} not found")
        return found

    async def restore_version(
        self, version_id: str, context: Optional[AuditContext] = None
    ) -> AuditableDocument:
        """
        Roll the live document back to the snapshot in version_id.

        A pre-restore snapshot is written first so the rollback is itself reversible.
        The save goes straight to the store; this method records its own history.
        """
        target = await self._repository.get_by_id(version_id)
        if target is None:
            raise VersionNotFoundError("Version not found")
        registered = self._registry.resolve(target.document_type)
        current = await registered.store.get(target.document_id, include_deleted=True)
        if current is None:
            raise DocumentNotFoundError("Document not found")

        try:
            before = current.to_payload()
            await self._write_version(
                current,
                ChangeType.SNAPSHOT,
                context,
                document_type=target.document_type,
                version_label="Pre-restore snapshot",
                changes_summary=f"Snapshot before restoring to version {target.version}",
                tags=("pre-restore",),
            )

            restored = registered.model.model_validate(
                merge_restored_payload(before, target.data or {})
            )
            restored.stamp_update(context, next_timestamp(current.last_modified_at))
            restored = await registered.store.replace(restored)
            changes = diff(before, restored.to_payload())

            restored_at = utcnow()
            actor_id = context.actor_id if context else None
            await self._write_version(
                restored,
                ChangeType.RESTORED,
                context,
                document_type=target.document_type,
                version_label=f"Restored from v{target.version}",
                changes_summary=f"Restored to version {target.version}",
                diff_entries=changes,
                tags=("restoration",),
                keep_forever=True,
                restored_from=target.version_id,
                restored_at=restored_at,
                restored_by=actor_id,
            )
            await self._repository.mark_restored(target.version_id, restored_at, actor_id)
        except Exception as e:
            logger.error(
                "version_restore_failed",
                extra={"version_id": version_id, "document_id": target.document_id, "error": str(e)},
            )
            raise RestoreFailedError(f"Failed to restore version: {e}") from e

        await self._record_restore(restored, target, context, changes)
        logger.info(
            "version_restored",
            extra={
                "document_id": target.document_id,
                "document_type": target.document_type,
                "version": target.version,
            },
        )
        return restored

    async def _record_restore(
        self,
        restored: AuditableDocument,
        target: DocumentVersion,
        context: Optional[AuditContext],
        changes: list,
    ) -> None:
        if self._audit_logger is None or context is None:
            return
        try:
            await self._audit_logger.log_action(
                record_id=restored.id,
                record_type=target.document_type,
                action=AuditAction.UPDATE,
                context=context,
                changes=changes,
                reason=f"Restored to version {target.version}",
            )
        except Exception as e:
            await report_side_channel_failure(
                SideChannelFailure.from_exception(
                    channel=CHANNEL_AUDIT_LOG,
                    operation="restore_version",
                    record_type=target.document_type,
                    record_id=restored.id,
                    error=e,
                ),
                notifier=self._notifier,
                metrics=self._metrics,
            )

    async def compare_versions(self, version_id_a: str, version_id_b: str) -> VersionComparison:
        version_a = await self._repository.get_by_id(version_id_a)
        version_b = await self._repository.get_by_id(version_id_b)
        if version_a is None or version_b is None:
            raise VersionNotFoundError("One or both versions not found")
        if (version_a.document_id, version_a.document_type) != (
            version_b.document_id,
            version_b.document_type,
        ):
            raise VersionMismatchError("Versions are for different documents")
        return VersionComparison(
            version_a=version_a.summary(),
            version_b=version_b.summary(),
            differences=diff(version_a.data, version_b.data),
        )

    async def cleanup_expired_versions(
        self,
        document_id: Optional[str] = None,
        document_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CleanupResult:
        deleted = await self._repository.delete_expired(
            now or utcnow(), document_id=document_id, document_type=document_type
        )
        logger.info(
            "versions_cleaned_up",
            extra={"deleted": deleted, "document_id": document_id, "document_type": document_type},
        )
        if self._metrics is not None and deleted:
            self._metrics.increment("versions_purged", float(deleted))
        return CleanupResult(deleted=deleted)
