"""Booking model — a guest's reservation of a property for a date range."""

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homestay.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from homestay.models.enums import BookingStatus, enum_column


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A reservation linking a guest to a property for specific dates.

    ``total_price`` is fixed at creation from the property's nightly price and
    is never recomputed, even if the listing price changes later.
    """

    __tablename__ = "bookings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        enum_column(BookingStatus),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    property: Mapped["Property"] = relationship(back_populates="bookings", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    guest: Mapped["User"] = relationship(back_populates="bookings", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    payment: Mapped["Payment | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="booking", lazy="selectin", uselist=False, cascade="all, delete-orphan"
    )
    review: Mapped["Review | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="booking", lazy="selectin", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_bookings_date_order"),
        CheckConstraint("guest_count >= 1", name="ck_bookings_guest_count"),
        Index("ix_bookings_property_dates", "property_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, guest_id={self.guest_id}, status={self.status})>"
        )
