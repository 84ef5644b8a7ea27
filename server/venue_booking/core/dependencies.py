"""FastAPI dependencies for database, authentication, and request context."""

from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header, Request
from jwt import PyJWTError

from .config import settings
from .context import RequestContext, Role
from .database import get_db
from .exceptions import AuthenticationError
from .locking import VenueLockRegistry
from .rate_limit import RateLimiter


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Tokens are issued by the external identity provider and signed with the
    shared secret (HS256). Expected claims: ``sub``, ``role``, ``hotel_id``
    and, for administrators acting inside a tenant, ``impersonated_by``.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError(detail="Invalid token payload")

    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise AuthenticationError(detail="Invalid token payload: unknown role")

    hotel_id = payload.get("hotel_id")
    if hotel_id is not None:
        try:
            hotel_id = UUID(str(hotel_id))
        except ValueError:
            raise AuthenticationError(detail="Invalid token payload: malformed hotel_id")

    return {
        "user_id": str(user_id),
        "role": role,
        "hotel_id": hotel_id,
        "impersonated_by": payload.get("impersonated_by"),
    }


async def get_request_context(user: dict = Depends(get_current_user)) -> RequestContext:
    """Resolve the caller's permissions and audit mode once per request."""
    return RequestContext.build(
        user_id=user["user_id"],
        role=user["role"],
        hotel_id=user["hotel_id"],
        impersonated_by=user["impersonated_by"],
    )


def get_venue_locks(request: Request) -> VenueLockRegistry:
    """Venue lock registry shared by every request of this process."""
    return request.app.state.venue_locks


def get_rate_limiter(request: Request) -> RateLimiter:
    """Rate limiter for marketplace booking requests."""
    return request.app.state.rate_limiter


DatabaseSession = Depends(get_db)
RequiredAuth = Depends(get_current_user)
CallerContext = Depends(get_request_context)
VenueLocks = Depends(get_venue_locks)
PublicRateLimiter = Depends(get_rate_limiter)
