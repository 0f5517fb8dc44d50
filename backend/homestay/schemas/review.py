"""Pydantic v2 request/response schemas for review endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from homestay.schemas.auth import UserSummary


class ReviewCreate(BaseModel):
    """Schema for reviewing a completed booking."""

    property_id: uuid.UUID
    booking_id: uuid.UUID
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None


class ReviewUpdate(BaseModel):
    """Schema for editing a review. Omitted fields are left unchanged."""

    rating: int | None = Field(None, ge=1, le=5)
    comment: str | None = None


class ReviewResponse(BaseModel):
    """A review with its author's public profile."""

    id: uuid.UUID
    property_id: uuid.UUID
    user_id: uuid.UUID
    booking_id: uuid.UUID
    rating: int
    comment: str | None = None
    created_at: datetime
    user: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
