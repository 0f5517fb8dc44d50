"""FastAPI authentication dependencies for route protection."""

import logging
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from homestay.auth.jwt import decode_token
from homestay.database import get_db
from homestay.models.enums import UserRole
from homestay.models.user import User

logger = logging.getLogger(__name__)

# Missing tokens are reported by get_current_user as 401
_bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the Bearer token and return the authenticated user.

    Raises:
        HTTPException 401: Missing, invalid, expired or wrong-type token, or
            the user no longer exists or is inactive.
    """
    if credentials is None:
        raise _credentials_exception("Not authenticated")

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise _credentials_exception() from None

    # Refresh tokens are not accepted for API access
    if payload.get("type") != "access":
        raise _credentials_exception("Invalid token type")

    sub: str | None = payload.get("sub")
    if sub is None:
        raise _credentials_exception()

    try:
        user_id = uuid.UUID(sub)
    except ValueError:
        raise _credentials_exception() from None

    user = await db.get(User, user_id)
    if user is None:
        raise _credentials_exception()

    if not user.is_active:
        raise _credentials_exception("User account is inactive")

    return user


async def get_current_active_user(
    user: User = Depends(get_current_user),
) -> User:
    """Return the current user only if their account is active.

    Raises:
        HTTPException 403: If the user account is inactive.
    """
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return user


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """Build a dependency that admits only users holding one of ``roles``.

    Usage::

        @router.get("/payments")
        async def list_payments(user: User = Depends(require_roles(UserRole.PAYMENT_MANAGER, UserRole.ADMIN))):
            ...
    """
    allowed = frozenset(roles)

    async def _check_role(user: User = Depends(get_current_active_user)) -> User:
        if user.role not in allowed:
            logger.info(
                "User %s with role %s denied; requires one of %s",
                user.id,
                user.role.value,
                sorted(r.value for r in allowed),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {user.role.value} is not authorized to access this route",
            )
        return user

    return _check_role
