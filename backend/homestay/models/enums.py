"""Enumeration types shared by the ORM models and API schemas."""

from enum import Enum

from sqlalchemy import Enum as SAEnum


class UserRole(str, Enum):
    """Role attached to every user account."""

    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"
    PAYMENT_MANAGER = "payment_manager"
    FIELD_INSPECTOR = "field_inspector"


class ListingStatus(str, Enum):
    """Moderation status of a property listing."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    """Status of the payment paired with a booking."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Payment channel. ``pending`` is the placeholder until the guest pays."""

    PENDING = "pending"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"


def enum_column(enum_cls: type[Enum]) -> SAEnum:
    """Store an enum by value in a VARCHAR column (no native DB enum type)."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
