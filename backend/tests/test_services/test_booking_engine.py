"""Booking engine tests — pricing, validity checks, status machine and payment cascade."""

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.config import settings
from homestay.models.booking import Booking
from homestay.models.enums import BookingStatus, PaymentMethod, PaymentStatus, UserRole
from homestay.models.payment import Payment
from homestay.models.property import Property
from homestay.models.user import User
from homestay.services import booking_engine
from homestay.services.errors import (
    ConflictError,
    InvalidBookingError,
    NotFoundError,
    UnauthorizedError,
)

MARCH_15 = date(2024, 3, 15)
MARCH_20 = date(2024, 3, 20)


async def _book(
    db: AsyncSession,
    guest: User,
    prop: Property,
    start: date = MARCH_15,
    end: date = MARCH_20,
    **kwargs,
) -> Booking:
    return await booking_engine.create_booking(
        db,
        property_id=prop.id,
        guest_id=guest.id,
        guest_role=guest.role,
        start_date=start,
        end_date=end,
        **kwargs,
    )


async def _count(db: AsyncSession, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def _snapshot(db: AsyncSession, booking: Booking) -> tuple[dict, dict | None]:
    """Every stored column of the booking and its payment, read back through autoflush."""
    bookings, payments = Booking.__table__, Payment.__table__
    row = (await db.execute(select(bookings).where(bookings.c.id == booking.id))).mappings().one()
    payment = (
        (await db.execute(select(payments).where(payments.c.booking_id == booking.id))).mappings().one_or_none()
    )
    return dict(row), dict(payment) if payment is not None else None


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


class TestPricing:
    """Nights and totals are derived only from the dates and the nightly price."""

    def test_five_nights(self):
        assert booking_engine.nights_between(MARCH_15, MARCH_20) == 5

    def test_total_price_example(self):
        assert booking_engine.compute_total_price(MARCH_15, MARCH_20, Decimal("25000")) == Decimal("125000.00")

    def test_partial_day_rounds_up(self):
        start = datetime(2024, 3, 15, 14, 0)
        end = datetime(2024, 3, 19, 15, 0)
        assert booking_engine.nights_between(start, end) == 5

    def test_exact_days_not_rounded(self):
        start = datetime(2024, 3, 15, 14, 0)
        end = datetime(2024, 3, 17, 14, 0)
        assert booking_engine.nights_between(start, end) == 2

    def test_mixed_date_and_datetime(self):
        assert booking_engine.nights_between(MARCH_15, datetime(2024, 3, 16, 0, 30)) == 2

    def test_date_with_aware_datetime(self):
        utc_end = datetime(2024, 3, 16, tzinfo=timezone.utc)
        assert booking_engine.nights_between(MARCH_15, utc_end) == 1

        colombo = timezone(timedelta(hours=5, minutes=30))
        assert booking_engine.nights_between(datetime(2024, 3, 15, 12, tzinfo=colombo), MARCH_20) == 5

    def test_price_rounded_to_cents(self):
        assert booking_engine.compute_total_price(MARCH_15, MARCH_20, Decimal("99.999")) == Decimal("500.00")


# ---------------------------------------------------------------------------
# create_booking
# ---------------------------------------------------------------------------


class TestCreateBooking:
    async def test_creates_pending_booking_with_paired_payment(
        self, db_session: AsyncSession, guest_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property, guest_count=2)

        assert booking.status == BookingStatus.PENDING
        assert booking.total_price == Decimal("125000")
        assert booking.guest_count == 2
        assert booking.property_id == test_property.id
        assert booking.guest_id == guest_user.id

        payment = booking.payment
        assert payment is not None
        assert payment.booking_id == booking.id
        assert payment.amount == booking.total_price
        assert payment.status == PaymentStatus.PENDING
        assert payment.method == PaymentMethod.PENDING

    async def test_guest_count_defaults_to_one(
        self, db_session: AsyncSession, guest_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property, guest_count=None)
        assert booking.guest_count == 1

    async def test_special_requests_stored(self, db_session: AsyncSession, guest_user: User, test_property: Property):
        booking = await _book(db_session, guest_user, test_property, special_requests="Late arrival")
        assert booking.special_requests == "Late arrival"

    async def test_unknown_property(self, db_session: AsyncSession, guest_user: User):
        with pytest.raises(NotFoundError):
            await booking_engine.create_booking(
                db_session,
                property_id=uuid.uuid4(),
                guest_id=guest_user.id,
                guest_role=guest_user.role,
                start_date=MARCH_15,
                end_date=MARCH_20,
            )

    async def test_non_guest_rejected_without_writes(
        self, db_session: AsyncSession, host_user: User, test_property: Property
    ):
        with pytest.raises(UnauthorizedError):
            await _book(db_session, host_user, test_property)

        assert await _count(db_session, Booking) == 0
        assert await _count(db_session, Payment) == 0

    @pytest.mark.parametrize("end", [MARCH_15, date(2024, 3, 10)])
    async def test_end_not_after_start(
        self, db_session: AsyncSession, guest_user: User, test_property: Property, end: date
    ):
        with pytest.raises(InvalidBookingError):
            await _book(db_session, guest_user, test_property, end=end)
        assert await _count(db_session, Booking) == 0

    async def test_over_capacity(self, db_session: AsyncSession, guest_user: User, test_property: Property):
        with pytest.raises(InvalidBookingError, match="at most 4"):
            await _book(db_session, guest_user, test_property, guest_count=5)

    async def test_zero_guests(self, db_session: AsyncSession, guest_user: User, test_property: Property):
        with pytest.raises(InvalidBookingError):
            await _book(db_session, guest_user, test_property, guest_count=0)

    async def test_price_snapshot_ignores_later_price_change(
        self, db_session: AsyncSession, guest_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)

        test_property.price_per_night = Decimal("30000")
        await db_session.flush()
        await db_session.refresh(booking)

        assert booking.total_price == Decimal("125000")
        assert booking.payment.amount == Decimal("125000")


class TestOverlapGuard:
    """Pending and confirmed bookings hold their [start, end) range."""

    async def test_overlap_conflicts(
        self, db_session: AsyncSession, guest_user: User, other_guest: User, test_property: Property
    ):
        await _book(db_session, guest_user, test_property)

        with pytest.raises(ConflictError):
            await _book(db_session, other_guest, test_property, start=date(2024, 3, 18), end=date(2024, 3, 22))
        assert await _count(db_session, Booking) == 1

    async def test_back_to_back_allowed(
        self, db_session: AsyncSession, guest_user: User, other_guest: User, test_property: Property
    ):
        await _book(db_session, guest_user, test_property)
        booking = await _book(db_session, other_guest, test_property, start=MARCH_20, end=date(2024, 3, 22))
        assert booking.status == BookingStatus.PENDING

    async def test_cancelled_booking_frees_dates(
        self, db_session: AsyncSession, guest_user: User, other_guest: User, test_property: Property
    ):
        first = await _book(db_session, guest_user, test_property)
        await booking_engine.cancel_booking(db_session, booking_id=first.id, caller_id=guest_user.id)

        second = await _book(db_session, other_guest, test_property)
        assert second.status == BookingStatus.PENDING

    async def test_other_property_unaffected(
        self, db_session: AsyncSession, guest_user: User, test_property: Property, property_factory
    ):
        other = await property_factory(title="Hill Bungalow")
        await _book(db_session, guest_user, test_property)
        booking = await _book(db_session, guest_user, other)
        assert booking.property_id == other.id

    async def test_guard_can_be_disabled(
        self,
        db_session: AsyncSession,
        guest_user: User,
        other_guest: User,
        test_property: Property,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setattr(settings, "reject_overlapping_bookings", False)

        await _book(db_session, guest_user, test_property)
        await _book(db_session, other_guest, test_property)
        assert await _count(db_session, Booking) == 2


# ---------------------------------------------------------------------------
# cancel_booking
# ---------------------------------------------------------------------------


class TestCancelBooking:
    async def test_cancel_refunds_payment(self, db_session: AsyncSession, guest_user: User, test_property: Property):
        booking = await _book(db_session, guest_user, test_property)

        cancelled = await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=guest_user.id)

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.payment.status == PaymentStatus.REFUNDED
        assert cancelled.payment.amount == Decimal("125000")

    async def test_cancel_confirmed_booking(
        self, db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        await booking_engine.update_booking_status(
            db_session,
            booking_id=booking.id,
            new_status=BookingStatus.CONFIRMED,
            caller_id=host_user.id,
            caller_role=host_user.role,
        )

        cancelled = await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=guest_user.id)
        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.payment.status == PaymentStatus.REFUNDED

    async def test_cancel_without_payment_still_succeeds(
        self, db_session: AsyncSession, guest_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        booking.payment = None
        await db_session.flush()
        assert await _count(db_session, Payment) == 0

        cancelled = await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=guest_user.id)
        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.payment is None

    async def test_other_guest_cannot_cancel(
        self, db_session: AsyncSession, guest_user: User, other_guest: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        before = await _snapshot(db_session, booking)

        with pytest.raises(UnauthorizedError):
            await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=other_guest.id)

        assert await _snapshot(db_session, booking) == before
        assert booking.status == BookingStatus.PENDING
        assert booking.payment.status == PaymentStatus.PENDING

    async def test_host_cannot_cancel_as_guest(
        self, db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        before = await _snapshot(db_session, booking)
        with pytest.raises(UnauthorizedError):
            await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=host_user.id)
        assert await _snapshot(db_session, booking) == before

    async def test_cancel_twice_rejected(self, db_session: AsyncSession, guest_user: User, test_property: Property):
        booking = await _book(db_session, guest_user, test_property)
        await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=guest_user.id)

        with pytest.raises(InvalidBookingError):
            await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=guest_user.id)

    async def test_cancel_completed_rejected(
        self, db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        await booking_engine.update_booking_status(
            db_session,
            booking_id=booking.id,
            new_status="completed",
            caller_id=host_user.id,
            caller_role=host_user.role,
        )

        with pytest.raises(InvalidBookingError):
            await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=guest_user.id)
        assert booking.payment.status == PaymentStatus.PENDING

    async def test_unknown_booking(self, db_session: AsyncSession, guest_user: User):
        with pytest.raises(NotFoundError):
            await booking_engine.cancel_booking(db_session, booking_id=uuid.uuid4(), caller_id=guest_user.id)


# ---------------------------------------------------------------------------
# update_booking_status
# ---------------------------------------------------------------------------


class TestUpdateBookingStatus:
    async def _set(self, db: AsyncSession, booking: Booking, caller: User, new_status) -> Booking:
        return await booking_engine.update_booking_status(
            db,
            booking_id=booking.id,
            new_status=new_status,
            caller_id=caller.id,
            caller_role=caller.role,
        )

    async def test_host_confirms(
        self, db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        updated = await self._set(db_session, booking, host_user, BookingStatus.CONFIRMED)

        assert updated.status == BookingStatus.CONFIRMED
        # The payment is left alone
        assert updated.payment.status == PaymentStatus.PENDING

    async def test_admin_of_any_property(
        self, db_session: AsyncSession, guest_user: User, admin_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        updated = await self._set(db_session, booking, admin_user, "confirmed")
        assert updated.status == BookingStatus.CONFIRMED

    async def test_other_host_rejected(
        self, db_session: AsyncSession, guest_user: User, other_host: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        before = await _snapshot(db_session, booking)
        with pytest.raises(UnauthorizedError):
            await self._set(db_session, booking, other_host, BookingStatus.CONFIRMED)
        assert await _snapshot(db_session, booking) == before
        assert booking.status == BookingStatus.PENDING

    async def test_guest_rejected(self, db_session: AsyncSession, guest_user: User, test_property: Property):
        booking = await _book(db_session, guest_user, test_property)
        before = await _snapshot(db_session, booking)
        with pytest.raises(UnauthorizedError):
            await self._set(db_session, booking, guest_user, BookingStatus.CONFIRMED)
        assert await _snapshot(db_session, booking) == before
        assert booking.status == BookingStatus.PENDING

    async def test_unknown_status(
        self, db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        before = await _snapshot(db_session, booking)
        with pytest.raises(InvalidBookingError):
            await self._set(db_session, booking, host_user, "archived")
        assert await _snapshot(db_session, booking) == before

    async def test_reapplying_status_is_idempotent(
        self, db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        await self._set(db_session, booking, host_user, BookingStatus.CONFIRMED)
        updated = await self._set(db_session, booking, host_user, BookingStatus.CONFIRMED)
        assert updated.status == BookingStatus.CONFIRMED

    async def test_permissive_by_default(
        self, db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property
    ):
        booking = await _book(db_session, guest_user, test_property)
        await self._set(db_session, booking, host_user, BookingStatus.COMPLETED)
        updated = await self._set(db_session, booking, host_user, BookingStatus.PENDING)
        assert updated.status == BookingStatus.PENDING

    async def test_strict_mode_enforces_lifecycle(
        self,
        db_session: AsyncSession,
        guest_user: User,
        host_user: User,
        test_property: Property,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setattr(settings, "strict_status_transitions", True)
        booking = await _book(db_session, guest_user, test_property)

        with pytest.raises(InvalidBookingError):
            await self._set(db_session, booking, host_user, BookingStatus.COMPLETED)
        assert booking.status == BookingStatus.PENDING

        await self._set(db_session, booking, host_user, BookingStatus.CONFIRMED)
        await self._set(db_session, booking, host_user, BookingStatus.CONFIRMED)
        updated = await self._set(db_session, booking, host_user, BookingStatus.COMPLETED)
        assert updated.status == BookingStatus.COMPLETED

        with pytest.raises(InvalidBookingError):
            await self._set(db_session, booking, host_user, BookingStatus.PENDING)

    def test_transition_table(self):
        assert booking_engine.can_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
        assert booking_engine.can_transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED)
        assert not booking_engine.can_transition(BookingStatus.CANCELLED, BookingStatus.PENDING)
        assert not booking_engine.can_transition(BookingStatus.COMPLETED, BookingStatus.CANCELLED)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    async def test_get_booking_visibility(
        self,
        db_session: AsyncSession,
        guest_user: User,
        other_guest: User,
        host_user: User,
        admin_user: User,
        test_property: Property,
    ):
        booking = await _book(db_session, guest_user, test_property)

        for caller in (guest_user, host_user, admin_user):
            found = await booking_engine.get_booking(
                db_session, booking_id=booking.id, caller_id=caller.id, caller_role=caller.role
            )
            assert found.id == booking.id

        with pytest.raises(UnauthorizedError):
            await booking_engine.get_booking(
                db_session, booking_id=booking.id, caller_id=other_guest.id, caller_role=other_guest.role
            )

    async def test_list_by_guest_and_host(
        self,
        db_session: AsyncSession,
        guest_user: User,
        other_guest: User,
        host_user: User,
        other_host: User,
        test_property: Property,
        property_factory,
    ):
        elsewhere = await property_factory(host=other_host, title="Hill Bungalow")
        mine = await _book(db_session, guest_user, test_property)
        await _book(db_session, other_guest, elsewhere)

        guest_list = await booking_engine.list_guest_bookings(db_session, guest_user.id)
        assert [b.id for b in guest_list] == [mine.id]

        host_list = await booking_engine.list_host_bookings(db_session, host_user.id)
        assert [b.id for b in host_list] == [mine.id]

    async def test_list_property_bookings_requires_host_or_admin(
        self,
        db_session: AsyncSession,
        guest_user: User,
        host_user: User,
        admin_user: User,
        test_property: Property,
    ):
        await _book(db_session, guest_user, test_property)

        for caller in (host_user, admin_user):
            bookings = await booking_engine.list_property_bookings(
                db_session, property_id=test_property.id, caller_id=caller.id, caller_role=caller.role
            )
            assert len(bookings) == 1

        with pytest.raises(UnauthorizedError):
            await booking_engine.list_property_bookings(
                db_session, property_id=test_property.id, caller_id=guest_user.id, caller_role=UserRole.GUEST
            )


async def test_full_lifecycle(db_session: AsyncSession, guest_user: User, host_user: User, test_property: Property):
    """Create, confirm, then cancel: booking cancelled and payment refunded."""
    booking = await _book(db_session, guest_user, test_property)
    assert booking.payment.status == PaymentStatus.PENDING

    await booking_engine.update_booking_status(
        db_session,
        booking_id=booking.id,
        new_status=BookingStatus.CONFIRMED,
        caller_id=host_user.id,
        caller_role=host_user.role,
    )
    cancelled = await booking_engine.cancel_booking(db_session, booking_id=booking.id, caller_id=guest_user.id)

    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.payment.status == PaymentStatus.REFUNDED
    assert cancelled.payment.amount == cancelled.total_price
