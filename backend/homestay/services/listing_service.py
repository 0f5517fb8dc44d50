"""Listing lookups shared by the booking engine and the property routers."""

import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.models.booking import Booking
from homestay.models.property import Property
from homestay.models.review import Review
from homestay.models.user import User
from homestay.services.errors import ConflictError, NotFoundError


async def resolve_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    """Return the property or raise ``NotFoundError``."""
    prop = await db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    return prop


async def resolve_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    """Return the user or raise ``NotFoundError``."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def ensure_property_has_no_bookings(db: AsyncSession, property_id: uuid.UUID) -> None:
    """Raise ``ConflictError`` if any booking, in any status, references the listing."""
    count = await db.scalar(select(func.count(Booking.id)).where(Booking.property_id == property_id))
    if count:
        raise ConflictError(f"Property has {count} booking(s) and cannot be deleted")


async def ensure_user_has_no_bookings(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Raise ``ConflictError`` if the user booked a stay or hosts a listing that was booked."""
    count = await db.scalar(
        select(func.count(Booking.id))
        .join(Property, Booking.property_id == Property.id)
        .where((Booking.guest_id == user_id) | (Property.host_id == user_id))
    )
    if count:
        raise ConflictError(f"User has {count} booking(s) and cannot be deleted")


async def rating_stats(db: AsyncSession, property_ids: list[uuid.UUID]) -> dict[uuid.UUID, tuple[Decimal, int]]:
    """Return ``{property_id: (average_rating, review_count)}`` in one query.

    Properties with no reviews map to ``(Decimal("0.0"), 0)``.
    """
    stats: dict[uuid.UUID, tuple[Decimal, int]] = {pid: (Decimal("0.0"), 0) for pid in property_ids}
    if not property_ids:
        return stats

    result = await db.execute(
        select(Review.property_id, func.avg(Review.rating), func.count(Review.id))
        .where(Review.property_id.in_(property_ids))
        .group_by(Review.property_id)
    )
    for property_id, average, count in result.all():
        rounded = Decimal(str(average or 0)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        stats[property_id] = (rounded, count)
    return stats
