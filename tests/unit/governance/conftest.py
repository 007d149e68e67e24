"""Fixtures for governance tests: in-memory stores and a small auditable model."""

from typing import Dict, List, Optional

import pytest

from app.governance.audit_context import AuditContext
from app.governance.audit_interceptor import attach_audit
from app.governance.audit_logger import AuditLogger
from app.governance.auditable import AuditableDocument
from app.governance.document_store import DocumentRegistry
from app.governance.versioning_service import VersioningService
from app.infrastructure.memory.audit_repository_memory import InMemoryAuditRepository
from app.infrastructure.memory.document_store_memory import InMemoryDocumentStore
from app.infrastructure.memory.version_repository_memory import InMemoryVersionRepository
from app.observability.metrics import MetricsCollector


class Listing(AuditableDocument):
    owner_id: str
    title: str
    nightly_rate: float = 100.0
    amenities: List[str] = []
    address: Dict[str, str] = {}
    notes: Optional[str] = None


class RecordingNotifier:
    def __init__(self):
        self.failures = []

    async def notify(self, failure):
        self.failures.append(failure)


@pytest.fixture
def manager():
    return AuditContext(
        actor_id="mgr-1", actor_name="Maya", role="manager", ip_address="10.0.0.5"
    )


@pytest.fixture
def customer():
    return AuditContext(actor_id="cust-1", actor_name="Cal", role="customer")


@pytest.fixture
def audit_repository():
    return InMemoryAuditRepository()


@pytest.fixture
def version_repository():
    return InMemoryVersionRepository()


@pytest.fixture
def listing_store():
    return InMemoryDocumentStore(Listing)


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def audit_logger(audit_repository):
    return AuditLogger(audit_repository)


@pytest.fixture
def versioning(version_repository, audit_logger, notifier, metrics):
    return VersioningService(
        version_repository,
        DocumentRegistry(),
        audit_logger=audit_logger,
        retention_days=365,
        notifier=notifier,
        metrics=metrics,
    )


@pytest.fixture
def listings(listing_store, audit_logger, versioning, notifier, metrics):
    return attach_audit(
        Listing,
        store=listing_store,
        audit_logger=audit_logger,
        versioning=versioning,
        fields_to_track=["title", "nightly_rate", "address.city"],
        enable_versioning=True,
        notifier=notifier,
        metrics=metrics,
    )


@pytest.fixture
def listing_model():
    return Listing


@pytest.fixture
def make_listing():
    def factory(**fields):
        fields.setdefault("owner_id", "h1")
        return Listing(**fields)

    return factory
