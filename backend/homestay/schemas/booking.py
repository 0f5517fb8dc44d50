"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from homestay.models.enums import BookingStatus
from homestay.schemas.auth import UserContact
from homestay.schemas.payment import PaymentResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingCreate(BaseModel):
    """Schema for requesting a stay. The price is computed server-side."""

    property_id: uuid.UUID
    start_date: date
    end_date: date
    guest_count: int | None = Field(None, ge=1)
    special_requests: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "BookingCreate":
        """Validate that end_date is strictly after start_date."""
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class BookingStatusUpdate(BaseModel):
    """Host/admin status change."""

    status: BookingStatus


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response returned from booking operations."""

    id: uuid.UUID
    property_id: uuid.UUID
    guest_id: uuid.UUID
    start_date: date
    end_date: date
    guest_count: int
    total_price: Decimal
    status: BookingStatus
    special_requests: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingPropertySummary(BaseModel):
    id: uuid.UUID
    host_id: uuid.UUID
    title: str
    location: str
    price_per_night: Decimal

    model_config = ConfigDict(from_attributes=True)


class BookingDetailResponse(BookingResponse):
    """Booking joined with its property, guest and payment for display."""

    property: BookingPropertySummary | None = None
    guest: UserContact | None = None
    payment: PaymentResponse | None = None


class BookingListResponse(BaseModel):
    """List of bookings."""

    items: list[BookingDetailResponse]
    total: int
