"""Property listing routes — public search, host management."""

import logging
import math
import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.api.deps import get_current_active_user, get_db, require_host
from homestay.models.enums import ListingStatus, UserRole
from homestay.models.property import Property
from homestay.models.review import Review
from homestay.models.user import User
from homestay.schemas.auth import MessageResponse, UserContact
from homestay.schemas.property import (
    SENSITIVE_FIELDS,
    PropertyCreate,
    PropertyDetailResponse,
    PropertyListResponse,
    PropertyResponse,
    PropertySearchItem,
    PropertySearchResponse,
    PropertyUpdate,
)
from homestay.schemas.review import ReviewResponse
from homestay.services.listing_service import ensure_property_has_no_bookings, rating_stats, resolve_property

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


async def _get_owned_property(db: AsyncSession, property_id: uuid.UUID, user: User) -> Property:
    """Fetch a listing the user may modify (its host, or any admin)."""
    prop = await resolve_property(db, property_id)
    if prop.host_id != user.id and user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this property",
        )
    return prop


@router.get(
    "",
    response_model=PropertySearchResponse,
    summary="Search approved listings",
)
async def search_properties(
    location: str | None = Query(None, description="Substring match on location"),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    bedrooms: int | None = Query(None, ge=0),
    guests: int | None = Query(None, ge=1, description="Minimum guest capacity"),
    verified_badge: bool | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> PropertySearchResponse:
    """Public, paginated search. Only approved listings are returned."""
    filters = [Property.status == ListingStatus.APPROVED]
    if location:
        pattern = location.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        filters.append(Property.location.ilike(f"%{pattern}%", escape="\\"))
    if min_price is not None:
        filters.append(Property.price_per_night >= min_price)
    if max_price is not None:
        filters.append(Property.price_per_night <= max_price)
    if bedrooms is not None:
        filters.append(Property.bedrooms == bedrooms)
    if guests is not None:
        filters.append(Property.max_guests >= guests)
    if verified_badge is not None:
        filters.append(Property.verified_badge == verified_badge)

    total_result = await db.execute(select(func.count()).select_from(Property).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Property)
        .where(*filters)
        .order_by(Property.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    props = list(result.scalars().all())

    stats = await rating_stats(db, [p.id for p in props])
    items = []
    for prop in props:
        item = PropertySearchItem.model_validate(prop)
        item.average_rating, item.review_count = stats[prop.id]
        items.append(item)

    return PropertySearchResponse(items=items, total=total, page=page, pages=math.ceil(total / limit))


@router.get(
    "/my/properties",
    response_model=PropertyListResponse,
    summary="List the current host's listings",
)
async def list_my_properties(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_host),
) -> PropertyListResponse:
    """Every listing owned by the caller, whatever its moderation status."""
    result = await db.execute(
        select(Property).where(Property.host_id == current_user.id).order_by(Property.created_at.desc())
    )
    props = list(result.scalars().all())
    return PropertyListResponse(
        items=[PropertyResponse.model_validate(p) for p in props],
        total=len(props),
    )


@router.get(
    "/{property_id}",
    response_model=PropertyDetailResponse,
    summary="Get a listing with host and reviews",
)
async def get_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PropertyDetailResponse:
    """Public listing detail, reviews newest first."""
    prop = await resolve_property(db, property_id)

    result = await db.execute(
        select(Review).where(Review.property_id == prop.id).order_by(Review.created_at.desc())
    )
    reviews = [ReviewResponse.model_validate(r) for r in result.scalars().all()]
    average_rating, review_count = (await rating_stats(db, [prop.id]))[prop.id]

    return PropertyDetailResponse(
        **PropertyResponse.model_validate(prop).model_dump(),
        host=UserContact.model_validate(prop.host),
        reviews=reviews,
        average_rating=average_rating,
        review_count=review_count,
    )


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a listing",
)
async def create_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_host),
) -> PropertyResponse:
    """Create a listing owned by the caller.

    Admin listings go live immediately; host listings wait for approval.
    """
    prop = Property(
        host=current_user,
        status=ListingStatus.APPROVED if current_user.role == UserRole.ADMIN else ListingStatus.PENDING,
        **body.model_dump(),
    )
    db.add(prop)
    await db.flush()
    await db.refresh(prop)

    logger.info("Property %s created by %s with status %s", prop.id, current_user.id, prop.status.value)
    return PropertyResponse.model_validate(prop)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update a listing",
)
async def update_property(
    property_id: uuid.UUID,
    body: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> PropertyResponse:
    """Partially update a listing.

    A host editing any pricing or descriptive field sends the listing back
    to ``pending`` for re-approval.
    """
    prop = await _get_owned_property(db, property_id, current_user)

    update_data = body.model_dump(exclude_unset=True, exclude_none=True)
    changed_sensitive = [f for f in SENSITIVE_FIELDS if f in update_data and update_data[f] != getattr(prop, f)]

    for field, value in update_data.items():
        setattr(prop, field, value)

    if changed_sensitive and current_user.role != UserRole.ADMIN:
        logger.info(
            "Property %s changed %s; status reverted to pending",
            prop.id,
            ", ".join(changed_sensitive),
        )
        prop.status = ListingStatus.PENDING

    await db.flush()
    await db.refresh(prop)
    return PropertyResponse.model_validate(prop)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete a listing",
)
async def delete_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Delete a listing that has never been booked.

    Bookings outlive their listing, so a listing with any booking history
    is refused with 409.
    """
    prop = await _get_owned_property(db, property_id, current_user)
    await ensure_property_has_no_bookings(db, prop.id)

    await db.delete(prop)
    await db.flush()

    logger.info("Property %s deleted by %s", property_id, current_user.id)
    return MessageResponse(message="Property deleted successfully")
