"""Authentication dependencies for FastAPI routes.

This module provides FastAPI dependency injection functions for
Supabase JWT token verification.
"""

from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from curator.core.exceptions import AuthenticationError
from curator.core.jwt import jwt_verifier
from curator.schemas.auth import CurrentUser
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """Get the current authenticated user from the JWT.

    Args:
        credentials: HTTP Authorization credentials (automatically injected)

    Returns:
        CurrentUser: Authenticated identity

    Raises:
        AuthenticationError: If the token is missing, invalid, or expired
    """
    if not credentials:
        LOGGER.warning("No authorization credentials provided")
        raise AuthenticationError("Unauthorized")

    token = credentials.credentials

    try:
        claims = await jwt_verifier.verify_token(token)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise AuthenticationError("Unauthorized", original_error=e) from e

    user = CurrentUser(
        id=claims.sub,
        email=claims.email,
        user_metadata=claims.user_metadata,
        access_token=token,
    )
    LOGGER.debug(f"Authenticated user: {user.id} ({user.email})")
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[CurrentUser]:
    """Get the current user if authenticated, None otherwise."""
    if not credentials:
        return None

    try:
        return await get_current_user(credentials)
    except AuthenticationError:
        return None
