"""Admin API router — user moderation, listing approval, dashboard and ledgers."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.api.deps import get_db, require_admin
from homestay.models.booking import Booking
from homestay.models.enums import BookingStatus, ListingStatus
from homestay.models.property import Property
from homestay.models.user import User
from homestay.schemas.admin import (
    DashboardStatsResponse,
    DashboardTotals,
    MonthlyRevenue,
    UserListResponse,
    UserRoleUpdate,
)
from homestay.schemas.auth import MessageResponse, UserResponse
from homestay.schemas.booking import BookingDetailResponse, BookingListResponse, BookingStatusUpdate
from homestay.schemas.payment import PaymentDetailResponse, PaymentListResponse
from homestay.schemas.property import PropertyListResponse, PropertyResponse, PropertyStatusUpdate
from homestay.services import booking_engine, payment_service
from homestay.services.listing_service import (
    ensure_property_has_no_bookings,
    ensure_user_has_no_bookings,
    resolve_property,
    resolve_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

RECENT_BOOKINGS_LIMIT = 10
REVENUE_MONTHS = 6


def _last_months(today: date, count: int) -> list[str]:
    """Return ``count`` month keys (``YYYY-MM``) ending with ``today``'s month, oldest first."""
    year, month = today.year, today.month
    keys: list[str] = []
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def _property_list(props: list[Property]) -> PropertyListResponse:
    return PropertyListResponse(
        items=[PropertyResponse.model_validate(p) for p in props],
        total=len(props),
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
async def list_users(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> UserListResponse:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    users = list(result.scalars().all())
    return UserListResponse(items=[UserResponse.model_validate(u) for u in users], total=len(users))


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> UserResponse:
    """Change a user's role and/or verified flag."""
    user = await resolve_user(db, user_id)

    if body.role is not None:
        user.role = body.role
    if body.verified is not None:
        user.verified = body.verified

    await db.flush()
    await db.refresh(user)

    logger.info("Admin %s set user %s to role=%s verified=%s", admin.id, user.id, user.role.value, user.verified)
    return UserResponse.model_validate(user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> MessageResponse:
    """Delete a user and their unbooked listings.

    Refused with 409 while the user has bookings as a guest or on any of
    their listings. Admins cannot delete themselves.
    """
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account",
        )

    user = await resolve_user(db, user_id)
    await ensure_user_has_no_bookings(db, user.id)
    for prop in list(user.properties):
        await db.delete(prop)
    await db.delete(user)
    await db.flush()

    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return MessageResponse(message="User deleted successfully")


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@router.get("/properties", response_model=PropertyListResponse)
async def list_all_properties(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> PropertyListResponse:
    result = await db.execute(select(Property).order_by(Property.created_at.desc()))
    return _property_list(list(result.scalars().all()))


@router.get("/properties/pending", response_model=PropertyListResponse)
async def list_pending_properties(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> PropertyListResponse:
    """Listings waiting for approval, oldest first."""
    result = await db.execute(
        select(Property).where(Property.status == ListingStatus.PENDING).order_by(Property.created_at.asc())
    )
    return _property_list(list(result.scalars().all()))


@router.put("/properties/{property_id}/status", response_model=PropertyResponse)
async def update_property_status(
    property_id: uuid.UUID,
    body: PropertyStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> PropertyResponse:
    """Approve or reject a listing, and/or grant its verified badge."""
    prop = await resolve_property(db, property_id)

    if body.status is not None:
        prop.status = body.status
    if body.verified_badge is not None:
        prop.verified_badge = body.verified_badge

    await db.flush()
    await db.refresh(prop)

    logger.info(
        "Admin %s set property %s to status=%s verified_badge=%s",
        admin.id,
        prop.id,
        prop.status.value,
        prop.verified_badge,
    )
    return PropertyResponse.model_validate(prop)


@router.delete("/properties/{property_id}", response_model=MessageResponse)
async def delete_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> MessageResponse:
    prop = await resolve_property(db, property_id)
    await ensure_property_has_no_bookings(db, prop.id)
    await db.delete(prop)
    await db.flush()

    logger.info("Admin %s deleted property %s", admin.id, property_id)
    return MessageResponse(message="Property deleted successfully")


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DashboardStatsResponse:
    """Headline counts, the latest bookings and completed revenue per month."""
    total_users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    total_properties = (
        await db.execute(
            select(func.count()).select_from(Property).where(Property.status == ListingStatus.APPROVED)
        )
    ).scalar_one()
    total_bookings = (
        await db.execute(
            select(func.count()).select_from(Booking).where(Booking.status == BookingStatus.CONFIRMED)
        )
    ).scalar_one()

    recent_result = await db.execute(
        select(Booking).order_by(Booking.created_at.desc()).limit(RECENT_BOOKINGS_LIMIT)
    )
    recent_bookings = [BookingDetailResponse.model_validate(b) for b in recent_result.scalars().all()]

    payments = await payment_service.revenue_payments(db)
    total_revenue = sum((Decimal(p.amount) for p in payments), Decimal("0.00"))

    # Bucket in Python so the query stays portable across database backends
    by_month: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for payment in payments:
        by_month[payment.payment_date.strftime("%Y-%m")] += Decimal(payment.amount)

    monthly_revenue = [
        MonthlyRevenue(month=key, total=by_month[key]) for key in _last_months(date.today(), REVENUE_MONTHS)
    ]

    return DashboardStatsResponse(
        stats=DashboardTotals(
            total_users=total_users,
            total_properties=total_properties,
            total_bookings=total_bookings,
            total_revenue=total_revenue,
        ),
        recent_bookings=recent_bookings,
        monthly_revenue=monthly_revenue,
    )


# ---------------------------------------------------------------------------
# Bookings & payments
# ---------------------------------------------------------------------------


@router.get("/bookings", response_model=BookingListResponse)
async def list_all_bookings(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> BookingListResponse:
    result = await db.execute(select(Booking).order_by(Booking.created_at.desc()))
    bookings = list(result.scalars().all())
    return BookingListResponse(
        items=[BookingDetailResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.put("/bookings/{booking_id}/status", response_model=BookingDetailResponse)
async def update_booking_status(
    booking_id: uuid.UUID,
    body: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> BookingDetailResponse:
    booking = await booking_engine.update_booking_status(
        db,
        booking_id=booking_id,
        new_status=body.status,
        caller_id=admin.id,
        caller_role=admin.role,
    )
    return BookingDetailResponse.model_validate(booking)


@router.get("/payments", response_model=PaymentListResponse)
async def list_all_payments(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> PaymentListResponse:
    payments = await payment_service.list_payments(db)
    return PaymentListResponse(
        items=[PaymentDetailResponse.model_validate(p) for p in payments],
        total=len(payments),
    )
