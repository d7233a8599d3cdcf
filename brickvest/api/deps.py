"""Common FastAPI dependencies for API endpoints."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from brickvest.core.config import get_settings
from brickvest.core.exceptions import AuthenticationError, AuthorizationError
from brickvest.core.security import decode_access_token
from brickvest.db.engine import get_db
from brickvest.models.user import User
from brickvest.services.payment_gateway import PaymentGateway, get_payment_gateway


def _extract_token(request: Request) -> str | None:
    """Bearer token from the Authorization header, falling back to the session cookie."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return request.cookies.get(get_settings().session_cookie_name)


async def get_current_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """FastAPI dependency to get the current authenticated user.

    Tokens issued before the user's last logout are rejected.

    Usage:
        @router.get("/profile")
        async def get_profile(user: CurrentUser):
            return user
    """
    token = _extract_token(request)
    if not token:
        raise AuthenticationError("Unauthorized")

    claims = decode_access_token(token)
    try:
        user_id = int(claims.get("sub", ""))
    except ValueError as e:
        raise AuthenticationError("Invalid session token") from e

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if claims.get("ver") != user.token_version:
        raise AuthenticationError("Session revoked")
    return user


async def require_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Ensure the user is an admin."""
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


# ============ Type Aliases for Common Dependencies ============

DbSession = Annotated[AsyncSession, Depends(get_db)]

# Authenticated user
CurrentUser = Annotated[User, Depends(get_current_user)]

# Admin
AdminUser = Annotated[User, Depends(require_admin)]

# Payment processor client
Gateway = Annotated[PaymentGateway, Depends(get_payment_gateway)]
