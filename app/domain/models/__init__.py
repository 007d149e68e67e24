"""Domain models. Pure business entities."""

from app.domain.models.booking import (
    BOOKING_DOCUMENT_TYPE,
    BOOKING_TRACKED_FIELDS,
    Booking,
    BookingStatus,
    PaymentStatus,
    Pricing,
)

__all__ = [
    "BOOKING_DOCUMENT_TYPE",
    "BOOKING_TRACKED_FIELDS",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "Pricing",
]
