"""Booking application service. Orchestrates domain validation and the audited booking collection."""

import logging
from typing import List, Optional

from app.application.exceptions import BookingNotFoundError
from app.domain.models.booking import Booking
from app.domain.schemas.booking import BookingCreateRequest, BookingUpdateRequest
from app.domain.validators.booking_validator import validate_booking, validate_booking_change
from app.governance.audit_context import AuditContext
from app.governance.audit_interceptor import AuditedCollection
from app.governance.exceptions import DocumentNotFoundError
from app.governance.version_models import VersionHistory


class BookingService:
    """
    No HTTP, no FastAPI. Authorization is decided by the caller; every mutation
    takes the acting AuditContext explicitly and goes through the audited collection.
    """

    def __init__(self, bookings: AuditedCollection[Booking], logger: logging.Logger) -> None:
        self._bookings = bookings
        self._logger = logger

    async def create_booking(
        self, request: BookingCreateRequest, context: AuditContext
    ) -> Booking:
        booking = Booking(
            user_id=request.user_id or context.actor_id,
            property_id=request.property_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guests=request.guests,
            pricing=request.pricing,
            special_requests=request.special_requests,
        )
        validate_booking(booking)
        saved = await self._bookings.create(booking, context)
        self._logger.info(
            "booking_created",
            extra={"booking_id": saved.id, "user_id": saved.user_id},
        )
        return saved

    async def get_booking(self, booking_id: str, *, include_deleted: bool = False) -> Booking:
        booking = await self._bookings.get(booking_id, include_deleted=include_deleted)
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return booking

    async def list_bookings(
        self,
        *,
        user_id: Optional[str] = None,
        include_deleted: bool = False,
        limit: int = 50,
        skip: int = 0,
    ) -> List[Booking]:
        filters = {"user_id": user_id} if user_id is not None else None
        return await self._bookings.find(
            filters, include_deleted=include_deleted, limit=limit, skip=skip
        )

    async def update_booking(
        self, booking_id: str, request: BookingUpdateRequest, context: AuditContext
    ) -> Booking:
        current = await self.get_booking(booking_id)
        patch = request.model_dump(exclude_unset=True)
        proposed = Booking.model_validate({**current.model_dump(), **patch})
        validate_booking_change(current, proposed)
        saved = await self._bookings.update(proposed, context)
        self._logger.info(
            "booking_updated",
            extra={"booking_id": saved.id, "fields": sorted(patch)},
        )
        return saved

    async def delete_booking(
        self, booking_id: str, context: AuditContext, reason: Optional[str] = None
    ) -> Booking:
        try:
            deleted = await self._bookings.soft_delete(booking_id, context, reason)
        except DocumentNotFoundError as e:
            raise BookingNotFoundError(f"Booking {booking_id} not found") from e
        self._logger.info("booking_deleted", extra={"booking_id": booking_id, "reason": reason})
        return deleted

    async def restore_booking(self, booking_id: str, context: AuditContext) -> Booking:
        try:
            restored = await self._bookings.restore(booking_id, context)
        except DocumentNotFoundError as e:
            raise BookingNotFoundError(f"Booking {booking_id} not found") from e
        self._logger.info("booking_restored", extra={"booking_id": booking_id})
        return restored

    async def version_history(self, booking_id: str, *, limit: Optional[int] = None) -> VersionHistory:
        return await self._bookings.get_version_history(booking_id, limit=limit)
