"""Pydantic v2 request/response schemas for property endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from homestay.models.enums import ListingStatus
from homestay.schemas.auth import UserContact, UserSummary
from homestay.schemas.review import ReviewResponse

# Changing any of these on a listing sends it back for approval.
SENSITIVE_FIELDS = (
    "title",
    "description",
    "price_per_night",
    "location",
    "address",
    "bedrooms",
    "bathrooms",
    "max_guests",
)

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PropertyCreate(BaseModel):
    """Schema for creating a new listing."""

    title: str = Field(..., min_length=1, max_length=150)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1, max_length=150)
    address: str = Field(..., min_length=1)
    price_per_night: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    bedrooms: int = Field(1, ge=0)
    bathrooms: int = Field(1, ge=0)
    max_guests: int = Field(2, ge=1)
    amenities: list[str] = Field(default_factory=list)


class PropertyUpdate(BaseModel):
    """Schema for partially updating a listing. All fields optional."""

    title: str | None = Field(None, min_length=1, max_length=150)
    description: str | None = Field(None, min_length=1)
    location: str | None = Field(None, min_length=1, max_length=150)
    address: str | None = Field(None, min_length=1)
    price_per_night: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    max_guests: int | None = Field(None, ge=1)
    amenities: list[str] | None = None


class PropertyStatusUpdate(BaseModel):
    """Admin moderation of a listing."""

    status: ListingStatus | None = None
    verified_badge: bool | None = None


class PropertyVerify(BaseModel):
    """Field inspector's verdict after visiting a listing."""

    inspector_notes: str | None = None
    verified_badge: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PropertyResponse(BaseModel):
    """Listing information returned from the API."""

    id: uuid.UUID
    host_id: uuid.UUID
    title: str
    description: str
    location: str
    address: str
    price_per_night: Decimal
    bedrooms: int
    bathrooms: int
    max_guests: int
    amenities: list | None = None
    status: ListingStatus
    verified_badge: bool
    inspector_notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertySearchItem(PropertyResponse):
    """Listing in public search results, with rating aggregates and host."""

    host: UserSummary | None = None
    average_rating: Decimal = Decimal("0.0")
    review_count: int = 0


class PropertySearchResponse(BaseModel):
    """Paginated public search results."""

    items: list[PropertySearchItem]
    total: int
    page: int
    pages: int


class PropertyListResponse(BaseModel):
    """Unpaginated list of listings (host and staff views)."""

    items: list[PropertyResponse]
    total: int


class PropertyDetailResponse(PropertyResponse):
    """Single listing with host contact and its reviews."""

    host: UserContact | None = None
    reviews: list[ReviewResponse] = Field(default_factory=list)
    average_rating: Decimal = Decimal("0.0")
    review_count: int = 0
