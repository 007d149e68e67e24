"""Domain validators. Pure validation functions."""

from app.domain.validators.booking_validator import (
    validate_booking,
    validate_booking_change,
    validate_stay_dates,
    validate_status_transition,
)

__all__ = [
    "validate_booking",
    "validate_booking_change",
    "validate_stay_dates",
    "validate_status_transition",
]
