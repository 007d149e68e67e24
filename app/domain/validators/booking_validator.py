"""Validators for booking rules. Pure functions, no infrastructure or DB access."""

from datetime import date

from app.domain.exceptions import DomainValidationError, InvalidStatusTransitionError
from app.domain.models.booking import STATUS_TRANSITIONS, Booking, BookingStatus

MAX_STAY_NIGHTS = 90


def validate_stay_dates(check_in: date, check_out: date) -> None:
    """check_out strictly after check_in, stay no longer than MAX_STAY_NIGHTS."""
    if check_out <= check_in:
        raise DomainValidationError("check_out must be after check_in")
    if (check_out - check_in).days > MAX_STAY_NIGHTS:
        raise DomainValidationError(f"stay must not exceed {MAX_STAY_NIGHTS} nights")


def validate_status_transition(current: BookingStatus, new: BookingStatus) -> None:
    if current == new:
        return
    if new not in STATUS_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(
            f"Invalid status transition from {current.value} to {new.value}"
        )


def validate_booking(booking: Booking) -> None:
    validate_stay_dates(booking.check_in, booking.check_out)


def validate_booking_change(current: Booking, proposed: Booking) -> None:
    """Rules for an update: dates stay consistent and the status moves along an allowed edge."""
    validate_booking(proposed)
    validate_status_transition(current.status, proposed.status)
