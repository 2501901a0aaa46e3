"""Persistent entities and their JSON shapes.

Field aliases keep the camelCase names already present in stored blobs
(``totalCredits``, ``imgUrl``...), so old data keeps loading.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as Date
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserProfile(BaseModel):
    """Durable identity record, stored at ``user:{id}``."""

    id: str = Field(..., min_length=1)
    name: str = ""
    email: str
    image: str | None = None
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


class HabitType(str, Enum):
    SLEEP = "sleep"
    SMOOTHIE = "smoothie"
    EXERCISE = "exercise"
    SOCIAL_MEDIA = "social_media"


class CreditAction(str, Enum):
    EARN = "earn"
    LOSE = "lose"


@dataclass(frozen=True)
class HabitDefinition:
    habit: HabitType
    name: str
    credits: int
    max_per_day: int = 1


HABITS: dict[HabitType, HabitDefinition] = {
    HabitType.SLEEP: HabitDefinition(HabitType.SLEEP, "Sleep 8 Hours", credits=2),
    HabitType.SMOOTHIE: HabitDefinition(HabitType.SMOOTHIE, "Drink Green Smoothie", credits=1),
    HabitType.EXERCISE: HabitDefinition(HabitType.EXERCISE, "30 Minutes Walk", credits=2, max_per_day=6),
    HabitType.SOCIAL_MEDIA: HabitDefinition(HabitType.SOCIAL_MEDIA, "Less Than 1hr Social Media", credits=1),
}


class HabitRecord(BaseModel):
    """One entry of the habit log."""

    date: Date
    habit: HabitType
    action: CreditAction
    credits: int = Field(..., ge=0)
    notes: str | None = None


# ---------------------------------------------------------------------------
# Rewards and the per-user aggregate
# ---------------------------------------------------------------------------


class Reward(BaseModel):
    """A reward, either in the global catalog or in a user's own list."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    credits: int = Field(..., gt=0)
    claimed: bool = False
    img_url: str | None = Field(None, alias="imgUrl")
    external_url: str | None = Field(
        None,
        validation_alias=AliasChoices("externalUrl", "amazonUrl", "external_url"),
        serialization_alias="externalUrl",
    )


class UserData(BaseModel):
    """Per-user aggregate stored at ``userData:{id}``."""

    model_config = ConfigDict(populate_by_name=True)

    total_credits: int = Field(0, ge=0, alias="totalCredits")
    habits: list[HabitRecord] = Field(default_factory=list)
    rewards: list[Reward] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> UserData:
        return cls(total_credits=0, habits=[], rewards=[])

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def dump_profile(profile: UserProfile) -> str:
    return profile.model_dump_json(exclude_none=True)
