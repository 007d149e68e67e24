"""
Side-channel failure reporting for best-effort audit and version writes.

A failed history write never propagates to the business operation. It is logged,
counted, and handed to an optional notifier so operators can alert on the gap.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

CHANNEL_AUDIT_LOG = "audit_log"
CHANNEL_VERSION_STORE = "version_store"


@dataclass(frozen=True)
class SideChannelFailure:
    channel: str
    operation: str
    record_type: str
    record_id: str
    error: str
    occurred_at: datetime

    @classmethod
    def from_exception(
        cls,
        *,
        channel: str,
        operation: str,
        record_type: str,
        record_id: Any,
        error: BaseException,
    ) -> "SideChannelFailure":
        return cls(
            channel=channel,
            operation=operation,
            record_type=record_type,
            record_id=str(record_id),
            error=f"{type(error).__name__}: {error}",
            occurred_at=datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel": self.channel,
            "operation": self.operation,
            "record_type": self.record_type,
            "record_id": self.record_id,
            "error": self.error,
            "occurred_at": self.occurred_at.isoformat(),
        }


class FailureNotifier(Protocol):
    """Alerting hook invoked after a side-channel write fails."""

    async def notify(self, failure: SideChannelFailure) -> None:
        ...


class Publisher(Protocol):
    async def publish(
        self, exchange_name: str, routing_key: str, message: dict, message_id: str
    ) -> None:
        ...


class BrokerFailureNotifier:
    """Publishes failures to a topic exchange, routing key '<channel>.failed'."""

    def __init__(self, publisher: Publisher, exchange_name: str = "audit_alerts") -> None:
        self._publisher = publisher
        self._exchange = exchange_name

    async def notify(self, failure: SideChannelFailure) -> None:
        await self._publisher.publish(
            self._exchange,
            f"{failure.channel}.failed",
            failure.to_dict(),
            str(uuid.uuid4()),
        )


async def report_side_channel_failure(
    failure: SideChannelFailure,
    *,
    notifier: Optional[FailureNotifier] = None,
    metrics: Any = None,
) -> None:
    """Log, count and forward a failure. Never raises."""
    logger.error(f"{failure.channel}_write_failed", extra=failure.to_dict())
    if metrics is not None:
        metrics.increment(f"{failure.channel}_write_failed", record_type=failure.record_type)
    if notifier is None:
        return
    try:
        await notifier.notify(failure)
    except Exception as e:
        logger.error(
            "failure_notifier_failed",
            extra={"channel": failure.channel, "error": str(e)},
        )
