"""Shared API dependencies — single import point for all routers.

Re-exports the database session and authentication dependencies so that
router modules can import everything they need from one place::

    from homestay.api.deps import get_db, get_current_active_user, require_roles
"""

from homestay.auth.dependencies import (
    get_current_active_user,
    get_current_user,
    require_roles,
)
from homestay.database import get_db
from homestay.models.enums import UserRole

# Common role gates
require_host = require_roles(UserRole.HOST, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)
require_payment_manager = require_roles(UserRole.PAYMENT_MANAGER, UserRole.ADMIN)
require_field_inspector = require_roles(UserRole.FIELD_INSPECTOR, UserRole.ADMIN)

__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "require_roles",
    "require_host",
    "require_admin",
    "require_payment_manager",
    "require_field_inspector",
]
