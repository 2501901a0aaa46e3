"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from habitbank.auth.jwt import verify_token
from habitbank.auth.resolver import load_profile
from habitbank.errors import ForbiddenError, UnauthorizedError
from habitbank.models import UserProfile
from habitbank.store.base import KeyValueStore
from habitbank.store.client import get_store

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    store: KeyValueStore = Depends(get_store),
) -> UserProfile:
    """
    Verify the Bearer token and return the stored profile.

    The role comes from the stored profile, not from the token claims.
    Raises 401 when there is no token, the token is bad, or the profile is gone.
    """
    if credentials is None:
        msg = "Unauthorized"
        raise UnauthorizedError(msg)
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(str(e)) from e

    profile = await load_profile(store, payload["sub"])
    if profile is None:
        msg = "User not found"
        raise UnauthorizedError(msg)
    return profile


async def require_admin(
    user: UserProfile = Depends(get_current_user),
) -> UserProfile:
    """Same as get_current_user but additionally requires role=admin."""
    if not user.is_admin:
        msg = "Admin role required"
        raise ForbiddenError(msg)
    return user
