"""Bookings API router.

Thin HTTP layer over ``homestay.services.booking_engine``. The acting user
is passed to the engine explicitly, and engine errors are mapped to status
codes by ``homestay.api.errors``.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.api.deps import get_current_active_user, get_db, require_host
from homestay.models.booking import Booking
from homestay.models.user import User
from homestay.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingListResponse,
    BookingStatusUpdate,
)
from homestay.services import booking_engine

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


def _as_list(bookings: list[Booking]) -> BookingListResponse:
    return BookingListResponse(
        items=[BookingDetailResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.post(
    "",
    response_model=BookingDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a stay",
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> BookingDetailResponse:
    """Create a pending booking (and its pending payment) for the caller.

    The total price is always computed from the listing's nightly price.
    """
    booking = await booking_engine.create_booking(
        db,
        property_id=body.property_id,
        guest_id=current_user.id,
        guest_role=current_user.role,
        start_date=body.start_date,
        end_date=body.end_date,
        guest_count=body.guest_count,
        special_requests=body.special_requests,
    )
    return BookingDetailResponse.model_validate(booking)


@router.get(
    "/my-bookings",
    response_model=BookingListResponse,
    summary="Bookings made by the current user",
)
async def list_my_bookings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> BookingListResponse:
    return _as_list(await booking_engine.list_guest_bookings(db, current_user.id))


@router.get(
    "/host-bookings",
    response_model=BookingListResponse,
    summary="Bookings on the current host's properties",
)
async def list_host_bookings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_host),
) -> BookingListResponse:
    return _as_list(await booking_engine.list_host_bookings(db, current_user.id))


@router.get(
    "/property/{property_id}",
    response_model=BookingListResponse,
    summary="Bookings for one property (host or admin)",
)
async def list_property_bookings(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> BookingListResponse:
    bookings = await booking_engine.list_property_bookings(
        db,
        property_id=property_id,
        caller_id=current_user.id,
        caller_role=current_user.role,
    )
    return _as_list(bookings)


@router.get(
    "/{booking_id}",
    response_model=BookingDetailResponse,
    summary="Get booking detail with property, guest and payment",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> BookingDetailResponse:
    """Visible to the booking's guest, the property's host, and admins."""
    booking = await booking_engine.get_booking(
        db,
        booking_id=booking_id,
        caller_id=current_user.id,
        caller_role=current_user.role,
    )
    return BookingDetailResponse.model_validate(booking)


@router.put(
    "/{booking_id}/cancel",
    response_model=BookingDetailResponse,
    summary="Cancel your own booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> BookingDetailResponse:
    """Guest cancellation. The paired payment is marked refunded."""
    booking = await booking_engine.cancel_booking(db, booking_id=booking_id, caller_id=current_user.id)
    return BookingDetailResponse.model_validate(booking)


@router.put(
    "/{booking_id}/status",
    response_model=BookingDetailResponse,
    summary="Accept, decline or complete a booking (host or admin)",
)
async def update_booking_status(
    booking_id: uuid.UUID,
    body: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_host),
) -> BookingDetailResponse:
    booking = await booking_engine.update_booking_status(
        db,
        booking_id=booking_id,
        new_status=body.status,
        caller_id=current_user.id,
        caller_role=current_user.role,
    )
    return BookingDetailResponse.model_validate(booking)
