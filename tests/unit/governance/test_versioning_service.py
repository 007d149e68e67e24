"""VersioningService: numbering, checksums, retention, restore-to-version, compare, cleanup."""

import hashlib
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from app.governance.audit_models import AuditAction, AuditQuery
from app.governance.change_tracker import FieldChange
from app.governance.document_store import DocumentRegistry
from app.governance.exceptions import (
    DocumentNotFoundError,
    RestoreFailedError,
    UnknownDocumentTypeError,
    VersionMismatchError,
    VersionNotFoundError,
    VersionNumberConflictError,
)
from app.governance.version_models import ChangeType
from app.governance.versioning_service import VersioningService, snapshot_info


async def _three_versions(listings, make_listing, manager):
    doc = await listings.create(make_listing(title="one", nightly_rate=100.0), manager)
    doc = await listings.update(doc.model_copy(update={"title": "two"}), manager)
    doc = await listings.update(doc.model_copy(update={"title": "three"}), manager)
    return doc


async def test_versions_numbered_from_one_without_gaps(
    listings, make_listing, versioning, manager
):
    doc = await _three_versions(listings, make_listing, manager)

    history = await versioning.get_version_history(doc.id, "Listing")

    assert [v.version for v in history.versions] == [3, 2, 1]
    assert history.total == 3
    assert history.current_version == 3
    assert all(v.data is None for v in history.versions)


async def test_history_paging_and_data(listings, make_listing, versioning, manager):
    doc = await _three_versions(listings, make_listing, manager)

    page = await versioning.get_version_history(
        doc.id, "Listing", limit=1, skip=1, include_data=True
    )

    assert [v.version for v in page.versions] == [2]
    assert page.versions[0].data["title"] == "two"
    assert page.total == 3


async def test_update_version_carries_diff(listings, make_listing, versioning, manager):
    doc = await _three_versions(listings, make_listing, manager)
    v2 = await versioning.get_version(doc.id, "Listing", 2)
    assert v2.change_type is ChangeType.UPDATED
    assert v2.changed_fields == ("title",)
    assert v2.diff == (FieldChange("title", "one", "two"),)
    assert v2.created_by == "mgr-1"
    assert v2.ip_address == "10.0.0.5"


async def test_snapshot_checksum_matches_canonical_payload(
    listings, make_listing, versioning, manager
):
    doc = await listings.create(make_listing(title="Loft"), manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)
    serialized = json.dumps(v1.data, sort_keys=True, separators=(",", ":")).encode()
    assert v1.snapshot.checksum == hashlib.sha256(serialized).hexdigest()
    assert v1.snapshot.size == len(serialized)
    assert v1.snapshot.compressed is False


def test_snapshot_info_ignores_key_order():
    assert snapshot_info({"a": 1, "b": 2}) == snapshot_info({"b": 2, "a": 1})


async def test_default_retention_expiry(listings, make_listing, versioning, manager):
    doc = await listings.create(make_listing(title="Loft"), manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)
    assert v1.retention.keep_forever is False
    expected = datetime.now(timezone.utc) + timedelta(days=365)
    assert abs(v1.retention.expires_at - expected) < timedelta(minutes=1)


async def test_get_version_not_found(versioning):
    with pytest.raises(VersionNotFoundError):
        await versioning.get_version("nope", "Listing", 1)


async def test_concurrent_allocation_retries_on_conflict(
    version_repository, make_listing, manager
):
    """Two writers read the same max; the loser gets a conflict and retries."""
    service = VersioningService(version_repository, max_allocation_retries=3)
    doc = make_listing(title="Loft")
    await service.create_version(doc, ChangeType.SNAPSHOT, manager, document_type="Listing")
    real_latest = version_repository.latest_version_number
    version_repository.latest_version_number = AsyncMock(side_effect=[0, 1])

    second = await service.create_version(
        doc, ChangeType.SNAPSHOT, manager, document_type="Listing"
    )

    version_repository.latest_version_number = real_latest
    assert second is not None
    assert second.version == 2
    assert await version_repository.count_for_document(doc.id, "Listing") == 2


async def test_allocation_gives_up_after_retries(
    version_repository, make_listing, manager, notifier
):
    version_repository.insert = AsyncMock(side_effect=VersionNumberConflictError("taken"))
    service = VersioningService(version_repository, max_allocation_retries=2, notifier=notifier)

    result = await service.create_version(
        make_listing(title="Loft"), ChangeType.SNAPSHOT, manager, document_type="Listing"
    )

    assert result is None
    assert version_repository.insert.await_count == 2
    assert notifier.failures[0].channel == "version_store"


async def test_restore_version_flow(
    listings, make_listing, versioning, version_repository, audit_repository, manager
):
    doc = await _three_versions(listings, make_listing, manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)

    restored = await versioning.restore_version(v1.version_id, manager)

    assert restored.title == "one"
    assert restored.id == doc.id
    assert restored.created_at == doc.created_at
    assert restored.created_by == "mgr-1"
    assert restored.updated_at > doc.updated_at
    assert (await listings.get(doc.id)).title == "one"

    history = await versioning.get_version_history(doc.id, "Listing")
    assert [v.version for v in history.versions] == [5, 4, 3, 2, 1]
    pre_restore = await versioning.get_version(doc.id, "Listing", 4)
    assert pre_restore.change_type is ChangeType.SNAPSHOT
    assert pre_restore.tags == ("pre-restore",)
    assert pre_restore.data["title"] == "three"

    restoration = await versioning.get_version(doc.id, "Listing", 5)
    assert restoration.change_type is ChangeType.RESTORED
    assert restoration.tags == ("restoration",)
    assert restoration.retention.keep_forever is True
    assert restoration.retention.expires_at is None
    assert restoration.restored_from == v1.version_id
    assert restoration.restored_by == "mgr-1"
    assert restoration.data["title"] == "one"

    marked = await version_repository.get_by_id(v1.version_id)
    assert marked.restored_by == "mgr-1"
    assert marked.restored_at is not None

    entries = await audit_repository.find(AuditQuery(record_id=doc.id), limit=10)
    assert entries[0].action is AuditAction.UPDATE
    assert entries[0].reason == "Restored to version 1"
    assert FieldChange("title", "three", "one") in entries[0].changes


async def test_restore_twice_in_a_row(listings, make_listing, versioning, manager):
    doc = await _three_versions(listings, make_listing, manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)

    await versioning.restore_version(v1.version_id, manager)
    again = await versioning.restore_version(v1.version_id, manager)

    assert again.title == "one"
    history = await versioning.get_version_history(doc.id, "Listing")
    assert history.current_version == 7


async def test_restore_unknown_version(versioning, manager):
    with pytest.raises(VersionNotFoundError):
        await versioning.restore_version("missing", manager)


async def test_restore_when_document_gone(
    listings, make_listing, versioning, listing_store, manager
):
    doc = await listings.create(make_listing(title="Loft"), manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)
    listing_store._payloads.clear()

    with pytest.raises(DocumentNotFoundError):
        await versioning.restore_version(v1.version_id, manager)


async def test_restore_unregistered_type(version_repository, make_listing, manager):
    writer = VersioningService(version_repository)
    version = await writer.create_version(
        make_listing(title="Loft"), ChangeType.SNAPSHOT, manager, document_type="Mystery"
    )
    reader = VersioningService(version_repository, DocumentRegistry())
    with pytest.raises(UnknownDocumentTypeError):
        await reader.restore_version(version.version_id, manager)


async def test_restore_failure_is_not_best_effort(
    listings, make_listing, versioning, listing_store, manager, monkeypatch
):
    doc = await _three_versions(listings, make_listing, manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)
    monkeypatch.setattr(listing_store, "replace", AsyncMock(side_effect=RuntimeError("disk full")))

    with pytest.raises(RestoreFailedError) as info:
        await versioning.restore_version(v1.version_id, manager)

    assert "disk full" in info.value.message


async def test_compare_versions(listings, make_listing, versioning, manager):
    doc = await _three_versions(listings, make_listing, manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)
    v3 = await versioning.get_version(doc.id, "Listing", 3)

    comparison = await versioning.compare_versions(v1.version_id, v3.version_id)

    assert comparison.version_a.version == 1
    assert comparison.version_b.version == 3
    assert FieldChange("title", "one", "three") in comparison.differences


async def test_compare_same_version_is_empty(listings, make_listing, versioning, manager):
    doc = await listings.create(make_listing(title="Loft"), manager)
    v1 = await versioning.get_version(doc.id, "Listing", 1)
    comparison = await versioning.compare_versions(v1.version_id, v1.version_id)
    assert comparison.differences == []


async def test_compare_different_documents(listings, make_listing, versioning, manager):
    a = await listings.create(make_listing(title="A"), manager)
    b = await listings.create(make_listing(title="B"), manager)
    va = await versioning.get_version(a.id, "Listing", 1)
    vb = await versioning.get_version(b.id, "Listing", 1)
    with pytest.raises(VersionMismatchError):
        await versioning.compare_versions(va.version_id, vb.version_id)


async def test_compare_missing_version(versioning):
    with pytest.raises(VersionNotFoundError):
        await versioning.compare_versions("x", "y")


async def test_cleanup_removes_only_expired(
    version_repository, make_listing, manager
):
    expired = VersioningService(version_repository, retention_days=365)
    doc = make_listing(title="Loft")
    await expired.create_version(doc, ChangeType.SNAPSHOT, manager, document_type="Listing")
    await expired.create_version(
        doc, ChangeType.SNAPSHOT, manager, document_type="Listing", keep_forever=True
    )
    other = make_listing(title="Other")
    await expired.create_version(other, ChangeType.SNAPSHOT, manager, document_type="Listing")

    # Nothing has expired yet.
    assert (await expired.cleanup_expired_versions()).deleted == 0

    later = datetime.now(timezone.utc) + timedelta(days=366)
    removed = await version_repository.delete_expired(later, document_id=doc.id)

    assert removed == 1
    remaining = await version_repository.list_for_document(doc.id, "Listing")
    assert [v.retention.keep_forever for v in remaining] == [True]
    assert await version_repository.count_for_document(other.id, "Listing") == 1


async def test_cleanup_result_message(versioning):
    result = await versioning.cleanup_expired_versions()
    assert result.deleted == 0
    assert result.message == "Cleaned up 0 old versions"
