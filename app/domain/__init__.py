"""Domain layer: models, schemas, validators, exceptions. Pure business logic only."""

from app.domain.exceptions import (
    DomainError,
    DomainValidationError,
    InvalidStatusTransitionError,
)
from app.domain.models import Booking, BookingStatus, PaymentStatus, Pricing
from app.domain.validators import (
    validate_booking,
    validate_booking_change,
    validate_status_transition,
)

__all__ = [
    "Booking",
    "BookingStatus",
    "DomainError",
    "DomainValidationError",
    "InvalidStatusTransitionError",
    "PaymentStatus",
    "Pricing",
    "validate_booking",
    "validate_booking_change",
    "validate_status_transition",
]
