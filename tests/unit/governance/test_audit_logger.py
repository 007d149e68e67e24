"""Governance tests: audit immutability and audit fields completeness."""

from datetime import timezone
from unittest.mock import AsyncMock

import pytest

from app.core.context import correlation_id_ctx
from app.governance.audit_context import AuditContext
from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditAction, AuditRecord
from app.governance.change_tracker import FieldChange


@pytest.fixture
def audit_repository():
    repo = AsyncMock()
    repo.save = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def audit_logger(audit_repository):
    return AuditLogger(repository=audit_repository)


@pytest.fixture
def context():
    return AuditContext(
        actor_id="user-1",
        actor_name="Ada",
        role="manager",
        ip_address="10.0.0.1",
        user_agent="pytest",
        session_id="sess-1",
    )


async def test_audit_immutability(audit_logger, audit_repository, context):
    """Audit record must not allow mutation; stored via repository."""
    await audit_logger.log_action(
        record_id="bk-1",
        record_type="Booking",
        action=AuditAction.UPDATE,
        context=context,
        changes=[FieldChange("status", "pending", "confirmed")],
        reason="guest confirmed",
    )
    assert audit_repository.save.await_count == 1
    record = audit_repository.save.call_args[0][0]
    assert isinstance(record, AuditRecord)
    assert record.record_id == "bk-1"
    assert record.record_type == "Booking"
    assert record.action is AuditAction.UPDATE
    assert record.changes == (FieldChange("status", "pending", "confirmed"),)
    assert record.reason == "guest confirmed"
    with pytest.raises(AttributeError):
        record.performed_by = "other"  # type: ignore[misc]


async def test_audit_fields_completeness(audit_logger, context):
    """Must include who, what, when (UTC), request metadata and correlation_id."""
    token = correlation_id_ctx.set("corr-9")
    try:
        record = await audit_logger.log_action(
            record_id=42,
            record_type="Booking",
            action=AuditAction.CREATE,
            context=context,
        )
    finally:
        correlation_id_ctx.reset(token)
    assert record.record_id == "42"
    assert record.performed_by == "user-1"
    assert record.performed_by_name == "Ada"
    assert record.performed_by_role == "manager"
    assert record.performed_at.tzinfo == timezone.utc
    assert record.ip_address == "10.0.0.1"
    assert record.user_agent == "pytest"
    assert record.session_id == "sess-1"
    assert record.correlation_id == "corr-9"
    assert record.changes == ()
    assert record.entry_id


async def test_audit_write_failure_propagates(audit_logger, audit_repository, context):
    audit_repository.save.side_effect = RuntimeError("db down")
    with pytest.raises(RuntimeError):
        await audit_logger.log_action(
            record_id="bk-1", record_type="Booking", action=AuditAction.DELETE, context=context
        )


async def test_to_dict_is_json_ready(audit_logger, context):
    record = await audit_logger.log_action(
        record_id="bk-1",
        record_type="Booking",
        action=AuditAction.UPDATE,
        context=context,
        changes=[FieldChange("guests", 1, 2)],
    )
    data = record.to_dict()
    assert data["action"] == "update"
    assert data["changes"] == [{"field": "guests", "old_value": 1, "new_value": 2}]
    assert data["performed_at"].endswith("+00:00")
