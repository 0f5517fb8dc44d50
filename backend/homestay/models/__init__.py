"""SQLAlchemy models for Homestay.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from homestay.models.booking import Booking
from homestay.models.enums import (
    BookingStatus,
    ListingStatus,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)
from homestay.models.payment import Payment
from homestay.models.property import Property
from homestay.models.review import Review
from homestay.models.user import User

__all__ = [
    "Booking",
    "BookingStatus",
    "ListingStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Property",
    "Review",
    "User",
    "UserRole",
]
