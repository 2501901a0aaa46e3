"""
Session token management.

After the OAuth callback the API issues its own signed access token. The
``sub`` claim is the canonical internal user id chosen by the identity
resolver, never the raw provider subject id.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from habitbank.config import get_settings


def create_access_token(user_id: str, email: str, role: str) -> str:
    """
    Create a signed session token.

    Args:
        user_id: Canonical internal user id.
        email: Normalized email of the profile.
        role: ``user`` or ``admin`` at issue time (informational; the stored
            profile stays authoritative).

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or of the wrong type.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)
    if not payload.get("sub"):
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)

    return payload


def create_state_token(nonce: str, ttl_seconds: int = 600) -> str:
    """
    Short-lived signed value for the OAuth ``state`` parameter.

    ``nonce`` is also set as a cookie on the browser that started the login;
    the callback only accepts a state whose nonce matches that cookie.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": "oauth",
        "nonce": nonce,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
        "iss": settings.jwt_issuer,
        "type": "state",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
