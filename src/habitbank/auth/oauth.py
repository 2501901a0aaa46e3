"""
Identity provider abstraction.

The provider is an external source of ``(subject_id, email, name, picture)``
tuples. Google is the only implementation; tests substitute their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from urllib.parse import urlencode

import httpx
import structlog

from habitbank.auth.resolver import OAuthIdentity
from habitbank.config import get_settings
from habitbank.errors import UnauthorizedError

logger = structlog.get_logger()

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class BaseIdentityProvider(ABC):
    """Abstract base class for OAuth identity providers."""

    @abstractmethod
    def authorization_url(self, state: str) -> str:
        """URL the browser is sent to in order to sign in."""
        ...

    @abstractmethod
    async def fetch_identity(self, code: str) -> OAuthIdentity:
        """Exchange an authorization code for the caller's identity."""
        ...


class GoogleIdentityProvider(BaseIdentityProvider):
    """Google OAuth 2.0 / OpenID Connect over httpx."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.transport = transport

    def authorization_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        })
        return f"{GOOGLE_AUTH_URL}?{query}"

    async def fetch_identity(self, code: str) -> OAuthIdentity:
        """
        Exchange the code for tokens, then read the userinfo endpoint.

        Raises:
            UnauthorizedError: If Google rejects the code or the response is unusable.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                token_response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    msg = "Identity provider returned no access token"
                    raise UnauthorizedError(msg)

                info_response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                info_response.raise_for_status()
                info = info_response.json()
        except httpx.HTTPError as e:
            logger.warning("oauth_exchange_failed", provider="google", error=str(e))
            msg = f"OAuth exchange failed: {e}"
            raise UnauthorizedError(msg) from e

        subject_id = info.get("sub")
        if not subject_id:
            msg = "Identity provider returned no subject id"
            raise UnauthorizedError(msg)
        return OAuthIdentity(
            subject_id=str(subject_id),
            email=info.get("email"),
            name=info.get("name"),
            picture=info.get("picture"),
        )


# Module-level singleton
_provider: BaseIdentityProvider | None = None


def get_identity_provider() -> BaseIdentityProvider:
    """Get or create the identity provider singleton (FastAPI dependency)."""
    global _provider  # noqa: PLW0603
    if _provider is None:
        settings = get_settings()
        _provider = GoogleIdentityProvider(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
        )
    return _provider


def reset_identity_provider() -> None:
    """Reset the provider singleton (for testing)."""
    global _provider  # noqa: PLW0603
    _provider = None
