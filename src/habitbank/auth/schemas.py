"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from habitbank.models import UserProfile


class TokenResponse(BaseModel):
    """Session token issued after a successful login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserProfile
    outcome: str


class EnvStatusResponse(BaseModel):
    """Which auth settings are configured. Never carries the values themselves."""

    admin_email: str
    google_client_id: str
    google_client_secret: str
    jwt_secret: str
    store_backend: str
