"""Pydantic v2 schemas for the admin endpoints."""

from decimal import Decimal

from pydantic import BaseModel

from homestay.models.enums import UserRole
from homestay.schemas.auth import UserResponse
from homestay.schemas.booking import BookingDetailResponse


class UserRoleUpdate(BaseModel):
    """Admin change of a user's role and/or verification flag."""

    role: UserRole | None = None
    verified: bool | None = None


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int


class DashboardTotals(BaseModel):
    total_users: int
    total_properties: int
    total_bookings: int
    total_revenue: Decimal


class MonthlyRevenue(BaseModel):
    month: str  # YYYY-MM
    total: Decimal


class DashboardStatsResponse(BaseModel):
    """Admin dashboard: headline counts, recent bookings and revenue trend."""

    stats: DashboardTotals
    recent_bookings: list[BookingDetailResponse]
    monthly_revenue: list[MonthlyRevenue]
