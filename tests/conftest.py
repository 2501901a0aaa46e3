"""Shared test fixtures."""

from __future__ import annotations

import os

os.environ["HABITBANK_ENVIRONMENT"] = "test"
os.environ["HABITBANK_REDIS_URL"] = ""
os.environ["HABITBANK_ADMIN_EMAIL"] = "admin@example.com"
os.environ["HABITBANK_JWT_SECRET"] = "test-secret"
os.environ["HABITBANK_RESET_API_KEY"] = "test-reset-key"
os.environ["HABITBANK_LOG_FORMAT"] = "console"

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from habitbank.auth.jwt import create_access_token  # noqa: E402
from habitbank.auth.oauth import BaseIdentityProvider, get_identity_provider  # noqa: E402
from habitbank.auth.resolver import OAuthIdentity  # noqa: E402
from habitbank.config import get_settings  # noqa: E402
from habitbank.keys import email_pointer_key, profile_key  # noqa: E402
from habitbank.main import create_app  # noqa: E402
from habitbank.models import Role, UserProfile, dump_profile  # noqa: E402
from habitbank.store.client import close_store, set_store  # noqa: E402
from habitbank.store.memory import MemoryStore  # noqa: E402

get_settings.cache_clear()


class FakeIdentityProvider(BaseIdentityProvider):
    """Hands out whatever identity was registered for an authorization code."""

    def __init__(self) -> None:
        self.identities: dict[str, OAuthIdentity] = {}

    def authorization_url(self, state: str) -> str:
        return f"https://provider.test/auth?state={state}"

    async def fetch_identity(self, code: str) -> OAuthIdentity:
        from habitbank.errors import UnauthorizedError

        identity = self.identities.get(code)
        if identity is None:
            msg = "Unknown authorization code"
            raise UnauthorizedError(msg)
        return identity


async def save_user(store: MemoryStore, user_id: str, email: str, role: Role = Role.USER, name: str = "") -> UserProfile:
    """Write a profile and its email pointer straight into the store."""
    profile = UserProfile(id=user_id, name=name or user_id, email=email, role=role)
    await store.set(profile_key(user_id), dump_profile(profile))
    await store.set(email_pointer_key(email), user_id)
    return profile


def bearer(profile: UserProfile) -> dict[str, str]:
    token = create_access_token(profile.id, profile.email, profile.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def store() -> MemoryStore:
    """Fresh in-memory store installed as the process-wide store."""
    mem = MemoryStore()
    set_store(mem)
    return mem


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest_asyncio.fixture
async def app(store: MemoryStore, identity_provider: FakeIdentityProvider) -> AsyncGenerator[FastAPI, None]:
    application = create_app()
    application.dependency_overrides[get_identity_provider] = lambda: identity_provider
    yield application
    await close_store()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def alice(store: MemoryStore) -> UserProfile:
    return await save_user(store, "104512345678901234567", "alice@example.com", name="Alice")


@pytest_asyncio.fixture
async def admin(store: MemoryStore) -> UserProfile:
    return await save_user(store, "109876543210987654321", "admin@example.com", role=Role.ADMIN, name="Admin")


@pytest_asyncio.fixture
async def user_client(app: FastAPI, alice: UserProfile) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as a regular user."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=bearer(alice)) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(app: FastAPI, admin: UserProfile) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as the admin."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=bearer(admin)) as ac:
        yield ac
