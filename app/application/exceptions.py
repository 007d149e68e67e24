"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BookingNotFoundError(ApplicationError):
    """Raised when a booking does not exist or is hidden by soft delete."""
