"""Seed the database with demo accounts, listings, bookings and reviews.

Every booking goes through the booking engine, so prices and payment rows
are exactly what the API would have produced.

Run from the backend directory:
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from homestay.auth.passwords import hash_password
from homestay.database import async_session_factory, engine
from homestay.models.booking import Booking
from homestay.models.enums import BookingStatus, ListingStatus, PaymentMethod, PaymentStatus, UserRole
from homestay.models.property import Property
from homestay.models.review import Review
from homestay.models.user import User
from homestay.services import booking_engine, payment_service

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_DOMAIN = "homestay.dev"
DEMO_PASSWORD = "demo1234"

USERS = [
    {"key": "admin", "name": "Ravi Admin", "role": UserRole.ADMIN},
    {"key": "host", "name": "Dilani Fernando", "role": UserRole.HOST, "phone": "+94771234567"},
    {"key": "host2", "name": "Marcus Webb", "role": UserRole.HOST},
    {"key": "guest", "name": "Emma Thompson", "role": UserRole.GUEST, "phone": "+61412345678"},
    {"key": "guest2", "name": "Kenji Sato", "role": UserRole.GUEST},
    {"key": "payments", "name": "Priya Payments", "role": UserRole.PAYMENT_MANAGER},
    {"key": "inspector", "name": "Ivan Inspector", "role": UserRole.FIELD_INSPECTOR},
]

PROPERTIES = [
    {
        "host": "host",
        "title": "Seaside Cottage",
        "description": "Two-bedroom cottage on the Galle fort walls, five minutes from the lighthouse.",
        "location": "Galle, Sri Lanka",
        "address": "12 Lighthouse Street, Galle Fort",
        "price_per_night": Decimal("25000.00"),
        "bedrooms": 2,
        "bathrooms": 1,
        "max_guests": 4,
        "amenities": ["wifi", "kitchen", "sea_view", "ac"],
        "status": ListingStatus.APPROVED,
        "verified_badge": True,
    },
    {
        "host": "host",
        "title": "Tea Estate Bungalow",
        "description": "Colonial planter's bungalow above the clouds with a wood fire and estate walks.",
        "location": "Nuwara Eliya, Sri Lanka",
        "address": "Pedro Estate Road, Nuwara Eliya",
        "price_per_night": Decimal("32000.00"),
        "bedrooms": 3,
        "bathrooms": 2,
        "max_guests": 6,
        "amenities": ["fireplace", "garden", "parking", "breakfast"],
        "status": ListingStatus.APPROVED,
        "verified_badge": False,
    },
    {
        "host": "host2",
        "title": "Lagoon House",
        "description": "Quiet lagoon-front house with kayaks and a hammock deck.",
        "location": "Negombo, Sri Lanka",
        "address": "7 Lagoon Road, Negombo",
        "price_per_night": Decimal("18000.00"),
        "bedrooms": 2,
        "bathrooms": 1,
        "max_guests": 4,
        "amenities": ["wifi", "kayaks", "parking"],
        "status": ListingStatus.APPROVED,
        "verified_badge": False,
    },
    {
        "host": "host2",
        "title": "Kandy Hill Loft",
        "description": "Studio loft overlooking the lake, walking distance to the Temple of the Tooth.",
        "location": "Kandy, Sri Lanka",
        "address": "3 Rajapihilla Mawatha, Kandy",
        "price_per_night": Decimal("9000.00"),
        "bedrooms": 1,
        "bathrooms": 1,
        "max_guests": 2,
        "amenities": ["wifi", "lake_view"],
        "status": ListingStatus.PENDING,
        "verified_badge": False,
    },
]

# (listing title, guest key, start offset, nights, guest count, final status)
BOOKINGS = [
    ("Seaside Cottage", "guest", -40, 5, 2, BookingStatus.COMPLETED),
    ("Seaside Cottage", "guest2", -10, 3, 1, BookingStatus.CANCELLED),
    ("Seaside Cottage", "guest2", 14, 4, 3, BookingStatus.CONFIRMED),
    ("Tea Estate Bungalow", "guest", 20, 7, 4, BookingStatus.PENDING),
    ("Lagoon House", "guest2", -25, 2, 2, BookingStatus.COMPLETED),
    ("Lagoon House", "guest", 30, 3, 2, BookingStatus.CONFIRMED),
]

REVIEWS = {
    ("Seaside Cottage", "guest"): (5, "Woke up to the waves every morning. Dilani was a wonderful host."),
    ("Lagoon House", "guest2"): (4, "Peaceful and clean. Bring mosquito repellent."),
}


def _email(key: str) -> str:
    return f"{key}@{DEMO_DOMAIN}"


# ---------------------------------------------------------------------------
# Main seed function
# ---------------------------------------------------------------------------


async def seed() -> None:
    """Populate the database with demo data.

    Idempotent: existing demo bookings (with their payments and reviews),
    listings and accounts are deleted first, in that order.
    """
    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.email.like(f"%@{DEMO_DOMAIN}")))
        existing = list(result.scalars().all())
        if existing:
            print(f"⚠️  Found {len(existing)} demo accounts. Deleting and re-seeding...")
            ids = [user.id for user in existing]
            bookings = await session.execute(
                select(Booking).join(Property).where((Booking.guest_id.in_(ids)) | (Property.host_id.in_(ids)))
            )
            for booking in bookings.scalars().all():
                await session.delete(booking)
            await session.flush()
            for user in existing:
                for prop in list(user.properties):
                    await session.delete(prop)
            await session.flush()
            for user in existing:
                await session.delete(user)
            await session.flush()

        # ------------------------------------------------------------------
        # 1. Users
        # ------------------------------------------------------------------
        users: dict[str, User] = {}
        for data in USERS:
            user = User(
                email=_email(data["key"]),
                hashed_password=hash_password(DEMO_PASSWORD),
                name=data["name"],
                phone=data.get("phone"),
                role=data["role"],
                verified=True,
                is_active=True,
            )
            session.add(user)
            users[data["key"]] = user
        await session.flush()
        print(f"✅ Created {len(users)} users")

        # ------------------------------------------------------------------
        # 2. Listings
        # ------------------------------------------------------------------
        listings: dict[str, Property] = {}
        for data in PROPERTIES:
            fields = {k: v for k, v in data.items() if k != "host"}
            prop = Property(host=users[data["host"]], **fields)
            session.add(prop)
            listings[prop.title] = prop
            print(f"   🏠 {prop.title} — {prop.location} ({prop.price_per_night}/night, {prop.status.value})")
        await session.flush()

        # ------------------------------------------------------------------
        # 3. Bookings through the engine, then their lifecycle
        # ------------------------------------------------------------------
        today = date.today()
        review_count = 0
        for title, guest_key, offset, nights, guest_count, final_status in BOOKINGS:
            prop = listings[title]
            guest = users[guest_key]
            start = today + timedelta(days=offset)

            booking = await booking_engine.create_booking(
                session,
                property_id=prop.id,
                guest_id=guest.id,
                guest_role=guest.role,
                start_date=start,
                end_date=start + timedelta(days=nights),
                guest_count=guest_count,
            )

            if final_status == BookingStatus.CANCELLED:
                await booking_engine.cancel_booking(session, booking_id=booking.id, caller_id=guest.id)
            elif final_status != BookingStatus.PENDING:
                host = prop.host
                await booking_engine.update_booking_status(
                    session,
                    booking_id=booking.id,
                    new_status=final_status,
                    caller_id=host.id,
                    caller_role=host.role,
                )
                await payment_service.update_payment_status(
                    session,
                    payment_id=booking.payment.id,
                    new_status=PaymentStatus.COMPLETED,
                    caller_id=users["payments"].id,
                    caller_role=UserRole.PAYMENT_MANAGER,
                    method=PaymentMethod.CREDIT_CARD,
                    transaction_id=f"DEMO-{booking.id.hex[:8].upper()}",
                )

            review = REVIEWS.get((title, guest_key))
            if review is not None and final_status == BookingStatus.COMPLETED:
                rating, comment = review
                session.add(Review(property=prop, booking=booking, user=guest, rating=rating, comment=comment))
                review_count += 1

            print(f"   📅 {title}: {guest.name} {start} +{nights}n → {final_status.value} ({booking.total_price})")

        await session.flush()
        await session.commit()

        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        print(f"   Users:      {len(users)} (e.g. {_email('admin')} / {DEMO_PASSWORD})")
        print(f"   Listings:   {len(listings)}")
        print(f"   Bookings:   {len(BOOKINGS)}")
        print(f"   Reviews:    {review_count}")
        print("=" * 60)
        print("🎉 Done! You can now log in at /api/v1/auth/login")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
