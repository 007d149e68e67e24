"""
Audit interception for a document type. No FastAPI.

attach_audit wraps a DocumentStore so every create, update, soft delete and
restore stamps the document, writes an audit entry and, when enabled, a version.
History writes are best-effort: the business write already succeeded and is
never rolled back because an audit or version write failed.
"""

import logging
from typing import Any, Generic, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar

from app.governance.alerts import (
    CHANNEL_AUDIT_LOG,
    FailureNotifier,
    SideChannelFailure,
    report_side_channel_failure,
)
from app.governance.audit_context import AuditContext
from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditAction
from app.governance.auditable import AUDIT_STAMP_FIELDS, AuditableDocument, next_timestamp
from app.governance.change_tracker import DEFAULT_IGNORED_KEYS, FieldChange, diff
from app.governance.document_store import DocumentRegistry, DocumentStore
from app.governance.exceptions import DocumentNotFoundError
from app.governance.version_models import ChangeType, VersionHistory
from app.governance.versioning_service import VersioningService

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=AuditableDocument)

_FULL_DIFF_IGNORED = DEFAULT_IGNORED_KEYS | AUDIT_STAMP_FIELDS


class AuditedCollection(Generic[T]):
    """
    Audited access to one document type.

    Without an AuditContext, stamps are left unset and no audit entry is written
    (an entry needs an actor); versions are still written, attributed to System.
    """

    def __init__(
        self,
        model: Type[T],
        *,
        store: DocumentStore,
        audit_logger: AuditLogger,
        versioning: Optional[VersioningService] = None,
        document_type: Optional[str] = None,
        fields_to_track: Optional[Sequence[str]] = None,
        enable_versioning: bool = False,
        notifier: Optional[FailureNotifier] = None,
        metrics: Any = None,
    ) -> None:
        if enable_versioning and versioning is None:
            raise ValueError("enable_versioning requires a VersioningService")
        self._model = model
        self._store = store
        self._audit_logger = audit_logger
        self._versioning = versioning if enable_versioning else None
        self._document_type = document_type or model.__name__
        self._fields_to_track = list(fields_to_track) if fields_to_track is not None else None
        self._notifier = notifier
        self._metrics = metrics

    @property
    def document_type(self) -> str:
        return self._document_type

    @property
    def versioning_enabled(self) -> bool:
        return self._versioning is not None

    def track_changes(self, old: Mapping[str, Any], new: Mapping[str, Any]) -> List[FieldChange]:
        if self._fields_to_track is not None:
            return diff(old, new, self._fields_to_track)
        return diff(old, new, ignored_keys=_FULL_DIFF_IGNORED)

    async def _record(
        self,
        document_id: str,
        action: AuditAction,
        context: Optional[AuditContext],
        *,
        changes: Optional[Iterable[FieldChange]] = None,
        reason: Optional[str] = None,
    ) -> None:
        if context is None:
            logger.debug(
                "audit_skipped_no_actor",
                extra={"record_id": document_id, "record_type": self._document_type},
            )
            return
        try:
            await self._audit_logger.log_action(
                record_id=document_id,
                record_type=self._document_type,
                action=action,
                context=context,
                changes=changes,
                reason=reason,
            )
        except Exception as e:
            await report_side_channel_failure(
                SideChannelFailure.from_exception(
                    channel=CHANNEL_AUDIT_LOG,
                    operation=action.value,
                    record_type=self._document_type,
                    record_id=document_id,
                    error=e,
                ),
                notifier=self._notifier,
                metrics=self._metrics,
            )
            return
        if self._metrics is not None:
            self._metrics.increment("audit_entries_written", record_type=self._document_type)

    async def _snapshot(
        self,
        document: T,
        change_type: ChangeType,
        context: Optional[AuditContext],
        **options: Any,
    ) -> None:
        if self._versioning is None:
            return
        await self._versioning.create_version(
            document, change_type, context, document_type=self._document_type, **options
        )

    async def get(self, document_id: str, *, include_deleted: bool = False) -> Optional[T]:
        return await self._store.get(document_id, include_deleted=include_deleted)

    async def find(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        include_deleted: bool = False,
        limit: Optional[int] = None,
        skip: int = 0,
    ) -> List[T]:
        return await self._store.find(
            filters, include_deleted=include_deleted, limit=limit, skip=skip
        )

    async def create(self, document: T, context: Optional[AuditContext] = None) -> T:
        document.stamp_create(context, next_timestamp())
        saved = await self._store.insert(document)
        await self._record(saved.id, AuditAction.CREATE, context)
        await self._snapshot(
            saved,
            ChangeType.CREATED,
            context,
            version_label="Initial version",
            changes_summary="Document created",
        )
        return saved

    async def update(self, document: T, context: Optional[AuditContext] = None) -> T:
        """Save changes to an existing document. No entry or version when nothing tracked changed."""
        previous = await self._store.get(document.id, include_deleted=True)
        if previous is None:
            raise DocumentNotFoundError(f"{self._document_type} {document.id} not found")
        document.carry_creation_stamps(previous)
        document.stamp_update(context, next_timestamp(previous.last_modified_at))
        changes = self.track_changes(previous.to_payload(), document.to_payload())
        saved = await self._store.replace(document)
        if not changes:
            return saved
        await self._record(saved.id, AuditAction.UPDATE, context, changes=changes)
        await self._snapshot(
            saved,
            ChangeType.UPDATED,
            context,
            changes_summary=f"Updated {', '.join(c.field for c in changes)}",
            diff_entries=changes,
        )
        return saved

    async def soft_delete(
        self,
        document_id: str,
        context: Optional[AuditContext] = None,
        reason: Optional[str] = None,
    ) -> T:
        document = await self._store.get(document_id)
        if document is None:
            raise DocumentNotFoundError(f"{self._document_type} {document_id} not found")
        document.stamp_delete(context, next_timestamp(document.last_modified_at), reason)
        saved = await self._store.replace(document)
        await self._record(saved.id, AuditAction.DELETE, context, reason=reason)
        await self._snapshot(
            saved, ChangeType.DELETED, context, changes_summary="Document deleted", notes=reason
        )
        return saved

    async def restore(self, document_id: str, context: Optional[AuditContext] = None) -> T:
        """Undo a soft delete. Restoring a live document is a no-op."""
        document = await self._store.get(document_id, include_deleted=True)
        if document is None:
            raise DocumentNotFoundError(f"{self._document_type} {document_id} not found")
        if not document.is_deleted:
            return document
        at = next_timestamp(document.last_modified_at)
        document.clear_delete_stamps()
        document.stamp_update(context, at)
        saved = await self._store.replace(document)
        await self._record(saved.id, AuditAction.RESTORE, context)
        await self._snapshot(
            saved, ChangeType.RESTORED, context, changes_summary="Document restored"
        )
        return saved

    async def get_version_history(self, document_id: str, **options: Any) -> VersionHistory:
        if self._versioning is None:
            return VersionHistory(versions=[], total=0, current_version=0)
        return await self._versioning.get_version_history(
            document_id, self._document_type, **options
        )


def attach_audit(
    model: Type[T],
    *,
    store: DocumentStore,
    audit_logger: AuditLogger,
    versioning: Optional[VersioningService] = None,
    fields_to_track: Optional[Sequence[str]] = None,
    enable_versioning: bool = False,
    document_type: Optional[str] = None,
    registry: Optional[DocumentRegistry] = None,
    notifier: Optional[FailureNotifier] = None,
    metrics: Any = None,
) -> AuditedCollection[T]:
    """
    Build an AuditedCollection for model and register it for restore-to-version.

    The registry defaults to the versioning service's own, so restore_version can
    resolve the document type without further wiring.
    """
    collection = AuditedCollection(
        model,
        store=store,
        audit_logger=audit_logger,
        versioning=versioning,
        document_type=document_type,
        fields_to_track=fields_to_track,
        enable_versioning=enable_versioning,
        notifier=notifier,
        metrics=metrics,
    )
    if registry is None and versioning is not None:
        registry = versioning.registry
    if registry is not None:
        registry.register(collection.document_type, model, store)
    logger.info(
        "audit_attached",
        extra={
            "record_type": collection.document_type,
            "versioning": collection.versioning_enabled,
            "tracked_fields": len(fields_to_track) if fields_to_track is not None else None,
        },
    )
    return collection
