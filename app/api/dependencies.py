"""FastAPI dependency injection: storage backends, governance services, RBAC."""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Optional

from fastapi import Depends

from app.application.booking_service import BookingService
from app.config.settings import AppSettings, get_settings
from app.domain.models.booking import BOOKING_DOCUMENT_TYPE, BOOKING_TRACKED_FIELDS, Booking
from app.governance.alerts import BrokerFailureNotifier, FailureNotifier
from app.governance.audit_interceptor import attach_audit
from app.governance.audit_logger import AuditLogger
from app.governance.audit_query_service import AuditQueryService
from app.governance.audit_repository import AuditRepository
from app.governance.document_store import DocumentRegistry
from app.governance.retention import RetentionSweeper
from app.governance.versioning_service import VersioningService
from app.infrastructure.cache.redis_client import RedisClient
from app.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from app.observability.metrics import MetricsCollector
from app.scalability.distributed_lock import DistributedLock
from app.security.rbac import RBACService


@dataclass
class AppContainer:
    """Everything a request handler may need, built once per process."""

    settings: AppSettings
    rbac: RBACService
    metrics: MetricsCollector
    audit_repository: AuditRepository
    audit_logger: AuditLogger
    audit_queries: AuditQueryService
    versioning: VersioningService
    booking_service: BookingService
    sweeper: RetentionSweeper
    publisher: Optional[RabbitMQPublisher] = None
    redis_client: Optional[RedisClient] = None

    async def close(self) -> None:
        if self.publisher is not None:
            await self.publisher.close()
        if self.redis_client is not None:
            await self.redis_client.close()


def _storage(settings: AppSettings) -> tuple[Any, Any, Any]:
    """(audit repository, version repository, booking store) for the configured backend."""
    if settings.storage_backend == "memory":
        from app.infrastructure.memory.audit_repository_memory import InMemoryAuditRepository
        from app.infrastructure.memory.document_store_memory import InMemoryDocumentStore
        from app.infrastructure.memory.version_repository_memory import InMemoryVersionRepository

        return (
            InMemoryAuditRepository(),
            InMemoryVersionRepository(),
            InMemoryDocumentStore(Booking),
        )

    # Imported lazily so the memory backend never creates an engine.
    from app.infrastructure.database.audit_repository_db import DbAuditRepository
    from app.infrastructure.database.document_store_db import DbDocumentStore
    from app.infrastructure.database.session import AsyncSessionLocal
    from app.infrastructure.database.version_repository_db import DbVersionRepository

    return (
        DbAuditRepository(AsyncSessionLocal),
        DbVersionRepository(AsyncSessionLocal),
        DbDocumentStore(AsyncSessionLocal, Booking, BOOKING_DOCUMENT_TYPE),
    )


def build_container(settings: Optional[AppSettings] = None) -> AppContainer:
    """Wire repositories, governance services and the booking collection."""
    settings = settings or get_settings()
    metrics = MetricsCollector()
    audit_repository, version_repository, booking_store = _storage(settings)

    publisher = RabbitMQPublisher(settings.rabbitmq_url) if settings.rabbitmq_url else None
    notifier: Optional[FailureNotifier] = (
        BrokerFailureNotifier(publisher, settings.audit_alert_exchange) if publisher else None
    )
    redis_client = RedisClient(settings.redis_url) if settings.redis_url else None

    audit_logger = AuditLogger(audit_repository)
    versioning = VersioningService(
        version_repository,
        DocumentRegistry(),
        audit_logger=audit_logger,
        retention_days=settings.version_retention_days,
        max_allocation_retries=settings.version_allocation_retries,
        notifier=notifier,
        metrics=metrics,
    )
    bookings = attach_audit(
        Booking,
        store=booking_store,
        audit_logger=audit_logger,
        versioning=versioning,
        fields_to_track=BOOKING_TRACKED_FIELDS,
        enable_versioning=True,
        document_type=BOOKING_DOCUMENT_TYPE,
        notifier=notifier,
        metrics=metrics,
    )
    sweeper = RetentionSweeper(
        versioning,
        audit_repository,
        audit_retention_days=settings.audit_retention_days,
        lock=DistributedLock(redis_client) if redis_client else None,
        metrics=metrics,
    )
    return AppContainer(
        settings=settings,
        rbac=RBACService(),
        metrics=metrics,
        audit_repository=audit_repository,
        audit_logger=audit_logger,
        audit_queries=AuditQueryService(audit_repository, export_limit=settings.audit_export_limit),
        versioning=versioning,
        booking_service=BookingService(bookings, logging.getLogger("app.application.booking_service")),
        sweeper=sweeper,
        publisher=publisher,
        redis_client=redis_client,
    )


_container: AppContainer | None = None


def get_container() -> AppContainer:
    """Return singleton container."""
    global _container
    if _container is None:
        _container = build_container()
    return _container


def reset_container() -> None:
    global _container
    _container = None


Container = Annotated[AppContainer, Depends(get_container)]


def get_rbac(container: Container) -> RBACService:
    return container.rbac


def get_metrics(container: Container) -> MetricsCollector:
    return container.metrics


def get_booking_service(container: Container) -> BookingService:
    return container.booking_service


def get_versioning_service(container: Container) -> VersioningService:
    return container.versioning


def get_audit_query_service(container: Container) -> AuditQueryService:
    return container.audit_queries

