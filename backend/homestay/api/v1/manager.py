"""Staff routes for payment managers and field inspectors."""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.api.deps import get_db, require_field_inspector, require_payment_manager
from homestay.models.enums import ListingStatus
from homestay.models.property import Property
from homestay.models.user import User
from homestay.schemas.payment import PaymentDetailResponse, PaymentListResponse, PaymentStatusUpdate
from homestay.schemas.property import PropertyListResponse, PropertyResponse, PropertyVerify
from homestay.services import payment_service
from homestay.services.listing_service import resolve_property

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/manager", tags=["manager"])


# ---------------------------------------------------------------------------
# Payment manager
# ---------------------------------------------------------------------------


@router.get("/payments", response_model=PaymentListResponse)
async def list_payments(
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_payment_manager),
) -> PaymentListResponse:
    """Every payment with its booking, property and guest."""
    payments = await payment_service.list_payments(db)
    return PaymentListResponse(
        items=[PaymentDetailResponse.model_validate(p) for p in payments],
        total=len(payments),
    )


@router.put("/payments/{payment_id}", response_model=PaymentDetailResponse)
async def update_payment(
    payment_id: uuid.UUID,
    body: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    manager: User = Depends(require_payment_manager),
) -> PaymentDetailResponse:
    payment = await payment_service.update_payment_status(
        db,
        payment_id=payment_id,
        new_status=body.status,
        caller_id=manager.id,
        caller_role=manager.role,
        method=body.method,
        transaction_id=body.transaction_id,
    )
    return PaymentDetailResponse.model_validate(payment)


# ---------------------------------------------------------------------------
# Field inspector
# ---------------------------------------------------------------------------


@router.get("/inspections", response_model=PropertyListResponse)
async def list_inspections(
    db: AsyncSession = Depends(get_db),
    _inspector: User = Depends(require_field_inspector),
) -> PropertyListResponse:
    """Listings without a verified badge or still awaiting approval."""
    result = await db.execute(
        select(Property)
        .where(or_(Property.verified_badge.is_(False), Property.status == ListingStatus.PENDING))
        .order_by(Property.created_at.asc())
    )
    props = list(result.scalars().all())
    return PropertyListResponse(
        items=[PropertyResponse.model_validate(p) for p in props],
        total=len(props),
    )


@router.put("/properties/{property_id}/verify", response_model=PropertyResponse)
async def verify_property(
    property_id: uuid.UUID,
    body: PropertyVerify,
    db: AsyncSession = Depends(get_db),
    inspector: User = Depends(require_field_inspector),
) -> PropertyResponse:
    """Record an inspection visit: notes and/or the verified badge."""
    prop = await resolve_property(db, property_id)

    if body.inspector_notes is not None:
        prop.inspector_notes = body.inspector_notes
    if body.verified_badge is not None:
        prop.verified_badge = body.verified_badge

    await db.flush()
    await db.refresh(prop)

    logger.info("Inspector %s verified property %s (badge=%s)", inspector.id, prop.id, prop.verified_badge)
    return PropertyResponse.model_validate(prop)
