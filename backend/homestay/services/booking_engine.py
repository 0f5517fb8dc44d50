"""Booking engine — pricing, validity checks, status machine and payment cascade.

Every operation takes the acting user explicitly (``caller_id`` /
``caller_role``) and raises a typed error from ``homestay.services.errors``
before touching any row, so a failed call never leaves a partial write.

Writes are flushed, not committed. The caller owns the transaction: inside
the API that is the request-scoped session from ``get_db``, which commits
the booking and its payment together or rolls both back.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.config import settings
from homestay.models.booking import Booking
from homestay.models.enums import BookingStatus, PaymentMethod, PaymentStatus, UserRole
from homestay.models.payment import Payment
from homestay.models.property import Property
from homestay.services.errors import (
    ConflictError,
    InvalidBookingError,
    NotFoundError,
    UnauthorizedError,
)
from homestay.services.listing_service import resolve_property, resolve_user
from homestay.services.payment_service import get_payment_for_booking

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)
_CENTS = Decimal("0.01")

# Statuses that hold the property's dates.
BLOCKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


def _as_datetime(value: date, zone: tzinfo | None = None) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=zone)


def nights_between(start: date, end: date) -> int:
    """Number of billable nights between two dates, rounding partial days up.

    Accepts ``date`` or ``datetime`` values. A bare ``date`` mixed with a
    ``datetime`` is read as midnight in that datetime's timezone. A span of
    4 days and 1 hour bills 5 nights.
    """
    zone = next((v.tzinfo for v in (start, end) if isinstance(v, datetime)), None)
    delta = _as_datetime(end, zone) - _as_datetime(start, zone)
    # ceil(delta / 1 day) in exact integer arithmetic
    return -(-delta // _ONE_DAY)


def compute_total_price(start: date, end: date, price_per_night: Decimal) -> Decimal:
    """``nights_between(start, end) × price_per_night``, rounded to cents."""
    nights = nights_between(start, end)
    return (Decimal(nights) * Decimal(price_per_night)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Whether the lifecycle table allows moving from ``current`` to ``target``."""
    return target in ALLOWED_TRANSITIONS[current]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _get_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


async def _find_overlapping_booking(
    db: AsyncSession,
    property_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> Booking | None:
    """Return a pending/confirmed booking whose [start, end) range overlaps."""
    result = await db.execute(
        select(Booking)
        .where(
            Booking.property_id == property_id,
            Booking.status.in_(BLOCKING_STATUSES),
            Booking.start_date < end_date,
            Booking.end_date > start_date,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


def _is_host_or_admin(prop: Property, caller_id: uuid.UUID, caller_role: UserRole | str) -> bool:
    return caller_role == UserRole.ADMIN or prop.host_id == caller_id


def _parse_status(value: BookingStatus | str) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in BookingStatus)
        raise InvalidBookingError(f"Invalid status {value!r}; expected one of: {valid}") from None


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def create_booking(
    db: AsyncSession,
    *,
    property_id: uuid.UUID,
    guest_id: uuid.UUID,
    guest_role: UserRole | str,
    start_date: date,
    end_date: date,
    guest_count: int | None = 1,
    special_requests: str | None = None,
) -> Booking:
    """Create a pending booking and its pending payment.

    Raises:
        NotFoundError: The property does not exist.
        UnauthorizedError: The caller is not a guest.
        InvalidBookingError: Bad date range or guest count.
        ConflictError: Another pending/confirmed booking holds the dates
            (only when ``settings.reject_overlapping_bookings`` is on).
    """
    prop = await resolve_property(db, property_id)
    guest = await resolve_user(db, guest_id)

    if guest_role != UserRole.GUEST:
        raise UnauthorizedError("Only guests can create bookings")

    if start_date >= end_date:
        raise InvalidBookingError("end_date must be after start_date")

    if guest_count is None:
        guest_count = 1
    if guest_count < 1:
        raise InvalidBookingError("guest_count must be at least 1")
    if guest_count > prop.max_guests:
        raise InvalidBookingError(f"This property accommodates at most {prop.max_guests} guests")

    if settings.reject_overlapping_bookings:
        clash = await _find_overlapping_booking(db, prop.id, start_date, end_date)
        if clash is not None:
            raise ConflictError("Property is not available for the selected dates")

    total_price = compute_total_price(start_date, end_date, prop.price_per_night)

    booking = Booking(
        property=prop,
        guest=guest,
        start_date=start_date,
        end_date=end_date,
        guest_count=guest_count,
        total_price=total_price,
        status=BookingStatus.PENDING,
        special_requests=special_requests,
    )
    payment = Payment(
        amount=total_price,
        status=PaymentStatus.PENDING,
        method=PaymentMethod.PENDING,
    )
    booking.payment = payment

    # One flush writes both rows in the caller's transaction.
    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    await db.refresh(payment)

    logger.info(
        "Booking %s created: property=%s guest=%s nights=%d total=%s",
        booking.id,
        prop.id,
        guest_id,
        nights_between(start_date, end_date),
        total_price,
    )
    return booking


async def cancel_booking(
    db: AsyncSession,
    *,
    booking_id: uuid.UUID,
    caller_id: uuid.UUID,
) -> Booking:
    """Guest-initiated cancellation. Refunds the paired payment when present.

    Raises:
        NotFoundError: The booking does not exist.
        UnauthorizedError: The caller is not the booking's guest.
        InvalidBookingError: The booking is already cancelled or completed.
    """
    booking = await _get_booking(db, booking_id)

    if booking.guest_id != caller_id:
        raise UnauthorizedError("Not authorized to cancel this booking")

    if booking.status in TERMINAL_STATUSES:
        raise InvalidBookingError(f"Cannot cancel a {booking.status.value} booking")

    booking.status = BookingStatus.CANCELLED

    payment = await get_payment_for_booking(db, booking.id)
    if payment is not None:
        payment.status = PaymentStatus.REFUNDED
    else:
        logger.warning("Booking %s cancelled without a payment record to refund", booking.id)

    await db.flush()
    await db.refresh(booking)
    if payment is not None:
        await db.refresh(payment)

    logger.info("Booking %s cancelled by guest %s", booking.id, caller_id)
    return booking


async def update_booking_status(
    db: AsyncSession,
    *,
    booking_id: uuid.UUID,
    new_status: BookingStatus | str,
    caller_id: uuid.UUID,
    caller_role: UserRole | str,
) -> Booking:
    """Host or admin sets a booking's status.

    Any status may overwrite any other unless
    ``settings.strict_status_transitions`` is on, in which case the
    lifecycle table applies. Re-applying the current status always succeeds.
    The payment row is not touched.

    Raises:
        NotFoundError: The booking does not exist.
        UnauthorizedError: The caller is neither the host nor an admin.
        InvalidBookingError: Unknown status, or a disallowed move in strict mode.
    """
    booking = await _get_booking(db, booking_id)
    prop = booking.property

    if not _is_host_or_admin(prop, caller_id, caller_role):
        raise UnauthorizedError("Not authorized to update this booking")

    target = _parse_status(new_status)
    current = booking.status

    if settings.strict_status_transitions and target != current and not can_transition(current, target):
        raise InvalidBookingError(f"Cannot move booking from {current.value} to {target.value}")

    booking.status = target
    await db.flush()
    await db.refresh(booking)

    logger.info(
        "Booking %s status %s -> %s by %s (%s)",
        booking.id,
        current.value,
        target.value,
        caller_id,
        getattr(caller_role, "value", caller_role),
    )
    return booking


async def get_booking(
    db: AsyncSession,
    *,
    booking_id: uuid.UUID,
    caller_id: uuid.UUID,
    caller_role: UserRole | str,
) -> Booking:
    """Return a booking visible to its guest, the host, or an admin."""
    booking = await _get_booking(db, booking_id)
    if booking.guest_id != caller_id and not _is_host_or_admin(booking.property, caller_id, caller_role):
        raise UnauthorizedError("Not authorized to view this booking")
    return booking


async def list_guest_bookings(db: AsyncSession, guest_id: uuid.UUID) -> list[Booking]:
    """Bookings made by a guest, newest first."""
    result = await db.execute(
        select(Booking).where(Booking.guest_id == guest_id).order_by(Booking.created_at.desc())
    )
    return list(result.scalars().all())


async def list_host_bookings(db: AsyncSession, host_id: uuid.UUID) -> list[Booking]:
    """Bookings on every property owned by a host, newest first."""
    result = await db.execute(
        select(Booking)
        .join(Property, Booking.property_id == Property.id)
        .where(Property.host_id == host_id)
        .order_by(Booking.created_at.desc())
    )
    return list(result.scalars().all())


async def list_property_bookings(
    db: AsyncSession,
    *,
    property_id: uuid.UUID,
    caller_id: uuid.UUID,
    caller_role: UserRole | str,
) -> list[Booking]:
    """Bookings on one property. Only its host or an admin may look."""
    prop = await resolve_property(db, property_id)
    if not _is_host_or_admin(prop, caller_id, caller_role):
        raise UnauthorizedError("Not authorized to view bookings for this property")

    result = await db.execute(
        select(Booking).where(Booking.property_id == prop.id).order_by(Booking.created_at.desc())
    )
    return list(result.scalars().all())
