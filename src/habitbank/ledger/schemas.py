"""Request/response schemas for habit and reward endpoints."""

from __future__ import annotations

from datetime import date as Date

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from habitbank.models import HabitRecord, HabitType, Reward, UserData


class HabitClaimRequest(BaseModel):
    """Claim or unclaim one habit on one day."""

    habit: HabitType
    date: Date
    notes: str | None = Field(None, max_length=500)


class HabitClaimResponse(BaseModel):
    """Result of a claim/unclaim. ``changed`` is False for a no-op."""

    model_config = ConfigDict(populate_by_name=True)

    changed: bool
    record: HabitRecord | None = None
    user_data: UserData = Field(..., alias="userData")


class RewardCreateRequest(BaseModel):
    """Add a reward to the global catalog."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(None, min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    credits: int = Field(..., gt=0)
    img_url: str | None = Field(None, alias="imgUrl")
    external_url: str | None = Field(
        None,
        validation_alias=AliasChoices("externalUrl", "amazonUrl", "external_url"),
    )


class RewardListResponse(BaseModel):
    rewards: list[Reward]


class RewardMutationResponse(BaseModel):
    success: bool = True
    reward: Reward


class CreditResetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., min_length=1, alias="userId")


class CreditResetResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    user_id: str = Field(..., alias="userId")
    total_credits: int = Field(..., alias="totalCredits")
