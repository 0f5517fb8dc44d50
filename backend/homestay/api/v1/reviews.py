"""Review routes — one review per completed stay."""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.api.deps import get_current_active_user, get_db
from homestay.models.booking import Booking
from homestay.models.enums import BookingStatus, UserRole
from homestay.models.review import Review
from homestay.models.user import User
from homestay.schemas.auth import MessageResponse
from homestay.schemas.review import ReviewCreate, ReviewListResponse, ReviewResponse, ReviewUpdate
from homestay.services.errors import ConflictError, NotFoundError, UnauthorizedError
from homestay.services.listing_service import resolve_property

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])


async def _get_review(db: AsyncSession, review_id: uuid.UUID) -> Review:
    review = await db.get(Review, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    return review


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    body: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ReviewResponse:
    """Review a completed booking the caller made on the given property."""
    result = await db.execute(
        select(Booking).where(
            Booking.id == body.booking_id,
            Booking.guest_id == current_user.id,
            Booking.property_id == body.property_id,
            Booking.status == BookingStatus.COMPLETED,
        )
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking not found or not completed")

    existing = await db.execute(select(Review.id).where(Review.booking_id == body.booking_id))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Review already exists for this booking")

    review = Review(
        property=booking.property,
        booking=booking,
        user=current_user,
        rating=body.rating,
        comment=body.comment,
    )
    db.add(review)
    await db.flush()
    await db.refresh(review)

    logger.info("Review %s (rating %d) left for booking %s", review.id, review.rating, review.booking_id)
    return ReviewResponse.model_validate(review)


@router.get("/property/{property_id}", response_model=ReviewListResponse)
async def list_property_reviews(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ReviewListResponse:
    """Public list of a property's reviews, newest first."""
    prop = await resolve_property(db, property_id)
    result = await db.execute(
        select(Review).where(Review.property_id == prop.id).order_by(Review.created_at.desc())
    )
    reviews = list(result.scalars().all())
    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=len(reviews),
    )


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: uuid.UUID,
    body: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ReviewResponse:
    """Authors may edit their own review."""
    review = await _get_review(db, review_id)
    if review.user_id != current_user.id:
        raise UnauthorizedError("Not authorized to edit this review")

    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(review, field, value)

    await db.flush()
    await db.refresh(review)
    return ReviewResponse.model_validate(review)


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_review(
    review_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Authors and admins may delete a review."""
    review = await _get_review(db, review_id)
    if review.user_id != current_user.id and current_user.role != UserRole.ADMIN:
        raise UnauthorizedError("Not authorized to delete this review")

    await db.delete(review)
    await db.flush()
    return MessageResponse(message="Review deleted successfully")
