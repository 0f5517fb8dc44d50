"""Pydantic v2 schemas for the payment ledger."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from homestay.models.enums import BookingStatus, PaymentMethod, PaymentStatus
from homestay.schemas.auth import UserContact


class PaymentStatusUpdate(BaseModel):
    """Payment-manager overwrite of a payment's status."""

    status: PaymentStatus
    method: PaymentMethod | None = None
    transaction_id: str | None = Field(None, max_length=100)


class PaymentResponse(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    amount: Decimal
    status: PaymentStatus
    method: PaymentMethod
    transaction_id: str | None = None
    payment_date: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentPropertySummary(BaseModel):
    id: uuid.UUID
    title: str

    model_config = ConfigDict(from_attributes=True)


class PaymentBookingSummary(BaseModel):
    """Booking context shown next to a payment in the ledger views."""

    id: uuid.UUID
    start_date: date
    end_date: date
    status: BookingStatus
    property: PaymentPropertySummary | None = None
    guest: UserContact | None = None

    model_config = ConfigDict(from_attributes=True)


class PaymentDetailResponse(PaymentResponse):
    booking: PaymentBookingSummary | None = None


class PaymentListResponse(BaseModel):
    items: list[PaymentDetailResponse]
    total: int
