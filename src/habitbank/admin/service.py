"""Admin user management over the key-value store."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from habitbank.auth.resolver import load_profile
from habitbank.errors import NotFoundError, ValidationError
from habitbank.keys import LEGACY_USER_ID, email_pointer_key, normalize_email, profile_key
from habitbank.ledger.catalog import RewardCatalog
from habitbank.ledger.service import assign_reward, remove_reward
from habitbank.ledger.store import UserDataStore
from habitbank.maintenance.policy import ADMIN_CREATED_ID_PREFIX
from habitbank.models import Reward, Role, UserData, UserProfile, dump_profile

if TYPE_CHECKING:
    from habitbank.maintenance.toolkit import MaintenanceToolkit
    from habitbank.store.base import KeyValueStore

logger = structlog.get_logger()

LEGACY_PROFILE = UserProfile(
    id=LEGACY_USER_ID,
    name="Legacy Data (Pre-Login)",
    email="legacy@example.com",
    role=Role.USER,
)


def new_user_id() -> str:
    return f"{ADMIN_CREATED_ID_PREFIX}{time.time_ns() // 1_000_000}"


async def list_users(toolkit: MaintenanceToolkit) -> list[UserProfile]:
    """All stored profiles sorted by id, followed by the virtual legacy entry."""
    profiles, _ = await toolkit.load_profiles()
    return [*sorted(profiles, key=lambda p: p.id), LEGACY_PROFILE]


async def create_user(
    store: KeyValueStore,
    name: str,
    email: str,
    image: str | None = None,
    source_user_id: str | None = None,
) -> UserProfile:
    """
    Create a user with profile, email pointer and seeded data.

    Raises:
        ValidationError: If the email already belongs to a user, or the id collides.
        NotFoundError: If ``source_user_id`` names a user that does not exist.
    """
    email = normalize_email(email)
    if await store.get(email_pointer_key(email)) is not None:
        msg = f"User with email {email} already exists"
        raise ValidationError(msg)
    if source_user_id and source_user_id != LEGACY_USER_ID:
        if await load_profile(store, source_user_id) is None:
            msg = f"Source user not found: {source_user_id}"
            raise NotFoundError(msg)

    profile = UserProfile(id=new_user_id(), name=name, email=email, image=image or None, role=Role.USER)
    if not await store.set_if_absent(profile_key(profile.id), dump_profile(profile)):
        msg = "User id collision, try again"
        raise ValidationError(msg)
    if not await store.set_if_absent(email_pointer_key(email), profile.id):
        await store.delete(profile_key(profile.id))
        msg = f"User with email {email} already exists"
        raise ValidationError(msg)

    await UserDataStore(store).seed(profile.id, source_user_id)
    logger.info("user_created_by_admin", user_id=profile.id, email=email, source_user_id=source_user_id)
    return profile


async def delete_user(store: KeyValueStore, user_id: str) -> UserProfile:
    """Remove a profile, its data and its email pointer (if it points here)."""
    profile = await load_profile(store, user_id)
    if profile is None:
        msg = f"User not found: {user_id}"
        raise NotFoundError(msg)

    await store.delete(profile_key(user_id))
    await UserDataStore(store).delete(user_id)
    pointer = email_pointer_key(profile.email)
    if await store.get(pointer) == user_id:
        await store.delete(pointer)
    logger.info("user_deleted_by_admin", user_id=user_id, email=profile.email)
    return profile


async def give_reward(store: KeyValueStore, user_id: str, reward_id: str) -> tuple[Reward, UserData]:
    """Copy a catalog reward into a user's own list."""
    reward = await RewardCatalog(store).get(reward_id)
    data_store = UserDataStore(store)
    data = await data_store.get(user_id)
    copy = assign_reward(data, reward)
    await data_store.save(user_id, data)
    return copy, data


async def take_reward(store: KeyValueStore, user_id: str, reward_id: str) -> tuple[Reward, UserData]:
    """Remove a reward from a user's own list."""
    data_store = UserDataStore(store)
    data = await data_store.get(user_id)
    reward = remove_reward(data, reward_id)
    await data_store.save(user_id, data)
    return reward, data
