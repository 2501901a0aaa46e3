"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

import secrets

import jwt
import structlog
from fastapi import APIRouter, Cookie, Depends, Query, Response
from fastapi.responses import RedirectResponse

from habitbank.auth.dependencies import get_current_user
from habitbank.auth.jwt import create_access_token, create_state_token, verify_token
from habitbank.auth.oauth import BaseIdentityProvider, get_identity_provider
from habitbank.auth.resolver import IdentityResolver
from habitbank.auth.schemas import TokenResponse
from habitbank.config import get_settings
from habitbank.dependencies import get_identity_resolver
from habitbank.errors import UnauthorizedError
from habitbank.models import UserProfile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

STATE_COOKIE = "habitbank_oauth_state"
STATE_TTL_SECONDS = 600


@router.get("/login")
async def login(
    provider: BaseIdentityProvider = Depends(get_identity_provider),
) -> RedirectResponse:
    """Redirect the browser to the identity provider, pinning the state to this browser."""
    nonce = secrets.token_urlsafe(24)
    response = RedirectResponse(
        provider.authorization_url(create_state_token(nonce, ttl_seconds=STATE_TTL_SECONDS)),
        status_code=302,
    )
    response.set_cookie(
        STATE_COOKIE,
        nonce,
        max_age=STATE_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=get_settings().environment == "production",
        path="/api/auth",
    )
    return response


@router.get("/callback", response_model=TokenResponse)
async def callback(
    response: Response,
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
    state_nonce: str | None = Cookie(None, alias=STATE_COOKIE),
    provider: BaseIdentityProvider = Depends(get_identity_provider),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> TokenResponse:
    """Finish the OAuth flow: resolve the identity and issue a session token."""
    try:
        payload = verify_token(state, expected_type="state")
    except jwt.InvalidTokenError as e:
        msg = f"Invalid OAuth state: {e}"
        raise UnauthorizedError(msg) from e
    if not state_nonce or not secrets.compare_digest(str(payload.get("nonce", "")), state_nonce):
        msg = "Invalid OAuth state: not issued to this browser"
        raise UnauthorizedError(msg)
    response.delete_cookie(STATE_COOKIE, path="/api/auth")

    identity = await provider.fetch_identity(code)
    resolved = await resolver.resolve(identity)

    settings = get_settings()
    token = create_access_token(resolved.user_id, resolved.profile.email, resolved.role.value)
    logger.info("login_succeeded", user_id=resolved.user_id, outcome=resolved.outcome.value)
    return TokenResponse(
        access_token=token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=resolved.profile,
        outcome=resolved.outcome.value,
    )


@router.get("/me", response_model=UserProfile)
async def me(user: UserProfile = Depends(get_current_user)) -> UserProfile:
    """Get own profile."""
    return user
