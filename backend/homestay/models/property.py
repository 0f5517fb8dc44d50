"""Property model — rentable listings owned by hosts."""

import uuid
from decimal import Decimal

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homestay.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from homestay.models.enums import ListingStatus, enum_column


class Property(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A rentable unit with a nightly price and a guest capacity."""

    __tablename__ = "properties"

    host_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    max_guests: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    amenities: Mapped[list | None] = mapped_column(JSON, default=list)
    status: Mapped[ListingStatus] = mapped_column(
        enum_column(ListingStatus),
        default=ListingStatus.PENDING,
        nullable=False,
        index=True,
    )
    verified_badge: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    inspector_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    host: Mapped["User"] = relationship(back_populates="properties", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    bookings: Mapped[list["Booking"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", lazy="selectin", passive_deletes="all"
    )
    reviews: Mapped[list["Review"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title!r}, status={self.status!r})>"
