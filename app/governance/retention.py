"""
Periodic retention sweep: expired versions and audit entries past their retention window.

keep_forever versions are never touched. With a distributed lock configured, only
the node that wins the lock sweeps on a given tick.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from app.governance.audit_repository import AuditRepository
from app.governance.versioning_service import VersioningService

logger = logging.getLogger(__name__)

SWEEP_LOCK_NAME = "retention-sweep"


@dataclass(frozen=True)
class SweepResult:
    versions_deleted: int
    audit_entries_deleted: int
    skipped: bool = False


class RetentionSweeper:
    def __init__(
        self,
        versioning: VersioningService,
        audit_repository: AuditRepository,
        *,
        audit_retention_days: int = 730,
        lock: Any = None,
        lock_ttl_seconds: int = 300,
        metrics: Any = None,
    ) -> None:
        self._versioning = versioning
        self._audit_repository = audit_repository
        self._audit_retention = timedelta(days=audit_retention_days)
        self._lock = lock
        self._lock_ttl = lock_ttl_seconds
        self._metrics = metrics

    async def sweep_once(self, now: Optional[datetime] = None) -> SweepResult:
        if self._lock is not None and not await self._lock.acquire(SWEEP_LOCK_NAME, self._lock_ttl):
            logger.info("retention_sweep_skipped", extra={"reason": "lock_held"})
            return SweepResult(versions_deleted=0, audit_entries_deleted=0, skipped=True)
        try:
            now = now or datetime.now(timezone.utc)
            cleanup = await self._versioning.cleanup_expired_versions(now=now)
            purged = await self._audit_repository.delete_older_than(now - self._audit_retention)
        finally:
            if self._lock is not None:
                await self._lock.release(SWEEP_LOCK_NAME)
        if self._metrics is not None:
            self._metrics.increment("retention_sweeps")
            if purged:
                self._metrics.increment("audit_entries_purged", float(purged))
        logger.info(
            "retention_sweep_completed",
            extra={"versions_deleted": cleanup.deleted, "audit_entries_deleted": purged},
        )
        return SweepResult(versions_deleted=cleanup.deleted, audit_entries_deleted=purged)

    async def run_forever(self, interval_seconds: float) -> None:
        """Sweep every interval until cancelled. A failed sweep is logged and retried next tick."""
        while True:
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("retention_sweep_failed", extra={"error": str(e)})
            await asyncio.sleep(interval_seconds)
