"""Payment ledger actions outside the booking engine."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.models.booking import Booking
from homestay.models.enums import PaymentMethod, PaymentStatus, UserRole
from homestay.models.payment import Payment
from homestay.services.errors import InvalidBookingError, NotFoundError

logger = logging.getLogger(__name__)


async def list_payments(db: AsyncSession) -> list[Payment]:
    """All payments, newest first, with their booking loaded."""
    result = await db.execute(select(Payment).order_by(Payment.payment_date.desc()))
    return list(result.scalars().all())


async def get_payment_for_booking(db: AsyncSession, booking_id: uuid.UUID) -> Payment | None:
    result = await db.execute(select(Payment).where(Payment.booking_id == booking_id))
    return result.scalar_one_or_none()


async def update_payment_status(
    db: AsyncSession,
    *,
    payment_id: uuid.UUID,
    new_status: PaymentStatus | str,
    caller_id: uuid.UUID,
    caller_role: UserRole | str,
    method: PaymentMethod | str | None = None,
    transaction_id: str | None = None,
) -> Payment:
    """Overwrite a payment's status (payment-manager action).

    The booking is left as it is and ``payment_date`` is not restamped.
    This write is not coordinated with the booking engine's refund cascade.
    """
    payment = await db.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")

    try:
        status = PaymentStatus(new_status)
        channel = PaymentMethod(method) if method is not None else None
    except ValueError as exc:
        raise InvalidBookingError(str(exc)) from None

    previous = payment.status
    payment.status = status
    if channel is not None:
        payment.method = channel
    if transaction_id is not None:
        payment.transaction_id = transaction_id

    await db.flush()
    await db.refresh(payment)

    logger.info(
        "Payment %s status %s -> %s by %s %s",
        payment.id,
        previous.value,
        status.value,
        getattr(caller_role, "value", caller_role),
        caller_id,
    )
    return payment


async def revenue_payments(db: AsyncSession) -> list[Payment]:
    """Completed payments, used by the admin dashboard."""
    result = await db.execute(
        select(Payment).join(Booking, Payment.booking_id == Booking.id).where(Payment.status == PaymentStatus.COMPLETED)
    )
    return list(result.scalars().all())
