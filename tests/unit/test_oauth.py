"""Google identity provider over a mocked transport."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from habitbank.auth.oauth import (
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    GoogleIdentityProvider,
    get_identity_provider,
    reset_identity_provider,
)
from habitbank.errors import UnauthorizedError


def _provider(handler) -> GoogleIdentityProvider:
    return GoogleIdentityProvider(
        client_id="cid",
        client_secret="secret",
        redirect_uri="http://localhost:8000/api/auth/callback",
        transport=httpx.MockTransport(handler),
    )


def _google(userinfo: dict, token_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == GOOGLE_TOKEN_URL:
            return httpx.Response(token_status, json={"access_token": "at-1"})
        if str(request.url) == GOOGLE_USERINFO_URL:
            assert request.headers["Authorization"] == "Bearer at-1"
            return httpx.Response(200, json=userinfo)
        return httpx.Response(404)

    return handler


class TestGoogleIdentityProvider:
    def test_authorization_url(self):
        url = urlparse(_provider(_google({})).authorization_url("st-1"))
        query = parse_qs(url.query)
        assert url.netloc == "accounts.google.com"
        assert query["state"] == ["st-1"]
        assert query["client_id"] == ["cid"]
        assert "email" in query["scope"][0]

    async def test_fetch_identity(self):
        provider = _provider(_google({"sub": "111", "email": "bob@example.com", "name": "Bob", "picture": "p"}))
        identity = await provider.fetch_identity("code")
        assert identity.subject_id == "111"
        assert identity.email == "bob@example.com"
        assert identity.name == "Bob"

    async def test_missing_email_is_passed_through(self):
        identity = await _provider(_google({"sub": "111"})).fetch_identity("code")
        assert identity.email is None

    async def test_rejected_code(self):
        with pytest.raises(UnauthorizedError):
            await _provider(_google({"sub": "111"}, token_status=400)).fetch_identity("bad")

    async def test_missing_subject(self):
        with pytest.raises(UnauthorizedError):
            await _provider(_google({"email": "bob@example.com"})).fetch_identity("code")


class TestProviderSingleton:
    def test_built_from_settings(self):
        reset_identity_provider()
        provider = get_identity_provider()
        assert isinstance(provider, GoogleIdentityProvider)
        assert get_identity_provider() is provider
        reset_identity_provider()
        assert get_identity_provider() is not provider
        reset_identity_provider()
