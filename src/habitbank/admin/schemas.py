"""Request/response schemas for admin endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from habitbank.models import UserData, UserProfile


class NewUserRequest(BaseModel):
    """Account created by an admin rather than by a login."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    image: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class AdminActionRequest(BaseModel):
    """Body of ``POST /api/users``. Which fields are required depends on ``action``."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(..., min_length=1)
    user_id: str | None = Field(None, alias="userId")
    user_data: UserData | None = Field(None, alias="userData")
    new_user: NewUserRequest | None = Field(None, alias="newUser")
    source_user_id: str | None = Field(None, alias="sourceUserId")
    reward_id: str | None = Field(None, alias="rewardId")
    key: str | None = None
    value: str | None = None
    prefix: str = ""


class UserListResponse(BaseModel):
    users: list[UserProfile]
