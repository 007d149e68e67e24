# Application layer: services that orchestrate domain and governance.

from app.application.booking_service import BookingService
from app.application.exceptions import ApplicationError, BookingNotFoundError

__all__ = [
    "ApplicationError",
    "BookingNotFoundError",
    "BookingService",
]
