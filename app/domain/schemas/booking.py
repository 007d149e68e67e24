"""Pydantic schemas for the booking API. Strict validation, no DB or infrastructure."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.domain.models.booking import BookingStatus, PaymentStatus, Pricing


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class BookingCreateRequest(BaseModel):
    """user_id defaults to the acting user; only staff may book on someone else's behalf."""

    user_id: Optional[str] = Field(None, min_length=1)
    property_id: Optional[str] = None
    check_in: date
    check_out: date
    guests: int = Field(1, ge=1)
    pricing: Pricing
    special_requests: Optional[str] = Field(None, max_length=2000)


class BookingUpdateRequest(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    guests: Optional[int] = Field(None, ge=1)
    pricing: Optional[Pricing] = None
    special_requests: Optional[str] = Field(None, max_length=2000)

    @field_validator("status", "payment_status", "check_in", "check_out", "guests", "pricing")
    @classmethod
    def must_not_be_null(cls, v):
        """Omit a field to leave it unchanged; only special_requests can be cleared."""
        if v is None:
            raise ValueError("may not be null")
        return v


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------

class BookingResponse(BaseModel):
    id: str
    user_id: str
    property_id: Optional[str] = None
    status: BookingStatus
    payment_status: PaymentStatus
    check_in: date
    check_out: date
    guests: int
    pricing: Pricing
    special_requests: Optional[str] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    updated_by_name: Optional[str] = None
    updated_at: Optional[datetime] = None
    is_deleted: bool = False
    deleted_by: Optional[str] = None
    deleted_at: Optional[datetime] = None
    deleted_reason: Optional[str] = None

    model_config = {"from_attributes": True}
