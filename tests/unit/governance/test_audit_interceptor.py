"""AuditedCollection: stamps, audit entries, versions, soft delete, best-effort history writes."""

from unittest.mock import AsyncMock

import pytest

from app.governance.audit_interceptor import attach_audit
from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditAction, AuditQuery
from app.governance.change_tracker import FieldChange
from app.governance.exceptions import DocumentNotFoundError
from app.governance.version_models import ChangeType


async def _entries(audit_repository, record_id):
    return await audit_repository.find(AuditQuery(record_id=record_id), limit=100)


async def test_create_stamps_and_records(
    make_listing, listings, audit_repository, version_repository, manager
):
    saved = await listings.create(make_listing(title="Loft"), manager)

    assert saved.created_by == "mgr-1"
    assert saved.created_by_name == "Maya"
    assert saved.created_by_role == "manager"
    assert saved.created_by_ip == "10.0.0.5"
    assert saved.created_at is not None
    assert saved.updated_at is None

    entries = await _entries(audit_repository, saved.id)
    assert len(entries) == 1
    assert entries[0].action is AuditAction.CREATE
    assert entries[0].record_type == "Listing"
    assert entries[0].changes == ()

    history = await version_repository.list_for_document(saved.id, "Listing", include_data=True)
    assert [v.version for v in history] == [1]
    assert history[0].change_type is ChangeType.CREATED
    assert history[0].data["title"] == "Loft"


async def test_update_records_tracked_changes_only(make_listing, listings, audit_repository, manager):
    created = await listings.create(make_listing(title="Loft"), manager)
    edited = created.model_copy(update={"title": "Sunny Loft", "notes": "untracked"})

    saved = await listings.update(edited, manager)

    assert saved.updated_by == "mgr-1"
    assert saved.updated_at > saved.created_at
    entries = await _entries(audit_repository, created.id)
    assert entries[0].action is AuditAction.UPDATE
    assert entries[0].changes == (FieldChange("title", "Loft", "Sunny Loft"),)


async def test_update_without_tracked_change_writes_nothing(
    make_listing, listings, audit_repository, version_repository, manager
):
    created = await listings.create(make_listing(title="Loft"), manager)
    await listings.update(created.model_copy(update={"notes": "only notes"}), manager)

    assert len(await _entries(audit_repository, created.id)) == 1
    assert await version_repository.count_for_document(created.id, "Listing") == 1
    stored = await listings.get(created.id)
    assert stored.notes == "only notes"


async def test_nested_tracked_path(make_listing, listings, audit_repository, manager):
    created = await listings.create(
        make_listing(title="Loft", address={"city": "Lisbon"}), manager
    )
    await listings.update(created.model_copy(update={"address": {"city": "Porto"}}), manager)
    entries = await _entries(audit_repository, created.id)
    assert entries[0].changes == (FieldChange("address.city", "Lisbon", "Porto"),)


async def test_creation_stamps_cannot_be_overwritten(make_listing, listings, manager, customer):
    created = await listings.create(make_listing(title="Loft"), manager)
    tampered = created.model_copy(update={"created_by": "someone", "title": "New"})

    saved = await listings.update(tampered, customer)

    assert saved.created_by == "mgr-1"
    assert saved.created_at == created.created_at
    assert saved.updated_by == "cust-1"


async def test_update_missing_document_raises(make_listing, listings, manager):
    with pytest.raises(DocumentNotFoundError):
        await listings.update(make_listing(title="Ghost"), manager)


async def test_update_timestamps_strictly_increase(make_listing, listings, manager):
    doc = await listings.create(make_listing(title="v0"), manager)
    stamps = [doc.created_at]
    for i in range(1, 6):
        doc = await listings.update(doc.model_copy(update={"title": f"v{i}"}), manager)
        stamps.append(doc.updated_at)
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)


async def test_soft_delete_hides_and_restore_returns(
    make_listing, listings, audit_repository, version_repository, manager
):
    created = await listings.create(make_listing(title="Loft"), manager)

    deleted = await listings.soft_delete(created.id, manager, reason="duplicate")

    assert deleted.is_deleted
    assert deleted.deleted_by == "mgr-1"
    assert deleted.deleted_reason == "duplicate"
    assert deleted.deleted_at is not None
    assert await listings.get(created.id) is None
    assert await listings.find() == []
    assert [d.id for d in await listings.find(include_deleted=True)] == [created.id]

    restored = await listings.restore(created.id, manager)

    assert not restored.is_deleted
    assert restored.deleted_by is None and restored.deleted_at is None
    assert restored.updated_by == "mgr-1"
    assert restored.updated_at > deleted.deleted_at
    assert (await listings.get(created.id)).id == created.id

    actions = [e.action for e in await _entries(audit_repository, created.id)]
    assert actions == [AuditAction.RESTORE, AuditAction.DELETE, AuditAction.CREATE]
    assert (await _entries(audit_repository, created.id))[1].reason == "duplicate"

    history = await version_repository.list_for_document(created.id, "Listing")
    assert [v.change_type for v in history] == [
        ChangeType.RESTORED,
        ChangeType.DELETED,
        ChangeType.CREATED,
    ]


async def test_soft_delete_of_deleted_document_raises(make_listing, listings, manager):
    created = await listings.create(make_listing(title="Loft"), manager)
    await listings.soft_delete(created.id, manager)
    with pytest.raises(DocumentNotFoundError):
        await listings.soft_delete(created.id, manager)


async def test_restore_of_live_document_is_noop(make_listing, listings, audit_repository, manager):
    created = await listings.create(make_listing(title="Loft"), manager)
    await listings.restore(created.id, manager)
    assert len(await _entries(audit_repository, created.id)) == 1


async def test_no_context_means_no_audit_entry_but_version_written(
    make_listing, listings, audit_repository, version_repository
):
    saved = await listings.create(make_listing(title="Seeded"))

    assert saved.created_by is None
    assert saved.created_at is not None
    assert len(audit_repository) == 0
    history = await version_repository.list_for_document(saved.id, "Listing")
    assert history[0].created_by is None
    assert history[0].created_by_name == "System"
    assert history[0].created_by_role == "system"


async def test_audit_failure_does_not_fail_business_write(
    make_listing, listing_model, listing_store, versioning, notifier, metrics, manager
):
    broken = AsyncMock()
    broken.save = AsyncMock(side_effect=RuntimeError("audit store down"))
    collection = attach_audit(
        listing_model,
        store=listing_store,
        audit_logger=AuditLogger(broken),
        versioning=versioning,
        enable_versioning=True,
        notifier=notifier,
        metrics=metrics,
    )

    saved = await collection.create(make_listing(title="Loft"), manager)

    assert await listing_store.get(saved.id) is not None
    assert len(notifier.failures) == 1
    assert notifier.failures[0].channel == "audit_log"
    assert notifier.failures[0].operation == "create"
    assert "audit store down" in notifier.failures[0].error
    assert metrics.get("audit_log_write_failed") == 1


async def test_version_failure_does_not_fail_business_write(
    make_listing, listings, listing_store, version_repository, notifier, manager, monkeypatch
):
    monkeypatch.setattr(
        version_repository, "insert", AsyncMock(side_effect=RuntimeError("versions down"))
    )

    saved = await listings.create(make_listing(title="Loft"), manager)

    assert await listing_store.get(saved.id) is not None
    assert [f.channel for f in notifier.failures] == ["version_store"]


async def test_versioning_disabled_writes_no_versions(
    make_listing, listing_model, listing_store, audit_logger, versioning, version_repository, manager
):
    collection = attach_audit(
        listing_model,
        store=listing_store,
        audit_logger=audit_logger,
        versioning=versioning,
        enable_versioning=False,
    )
    saved = await collection.create(make_listing(title="Loft"), manager)
    assert await version_repository.count_for_document(saved.id, "Listing") == 0
    history = await collection.get_version_history(saved.id)
    assert history.total == 0


def test_enable_versioning_requires_service(listing_model, listing_store, audit_logger):
    with pytest.raises(ValueError):
        attach_audit(
            listing_model, store=listing_store, audit_logger=audit_logger, enable_versioning=True
        )


async def test_full_diff_when_no_tracked_fields(
    make_listing, listing_model, listing_store, audit_logger, audit_repository, manager
):
    collection = attach_audit(listing_model, store=listing_store, audit_logger=audit_logger)
    created = await collection.create(make_listing(title="Loft"), manager)

    await collection.update(
        created.model_copy(update={"notes": "quiet", "amenities": ["wifi"]}), manager
    )

    entries = await _entries(audit_repository, created.id)
    fields = {c.field for c in entries[0].changes}
    assert fields == {"notes", "amenities"}


def test_attach_registers_document_type(listing_model, listings, versioning):
    assert "Listing" in versioning.registry
    assert versioning.registry.resolve("Listing").model is listing_model
