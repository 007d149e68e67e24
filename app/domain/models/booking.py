"""Booking: the example auditable entity of the travel domain."""

from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field

from app.governance.auditable import AuditableDocument

BOOKING_DOCUMENT_TYPE = "Booking"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


STATUS_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

# Changes to these show up in the audit log; everything else is stamped but not diffed.
BOOKING_TRACKED_FIELDS = (
    "status",
    "payment_status",
    "check_in",
    "check_out",
    "guests",
    "pricing.total_amount",
    "pricing.currency",
    "special_requests",
)


class Pricing(BaseModel):
    total_amount: float = Field(..., ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)


class Booking(AuditableDocument):
    user_id: str
    property_id: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    check_in: date
    check_out: date
    guests: int = Field(1, ge=1)
    pricing: Pricing
    special_requests: Optional[str] = None
