"""
Identity resolution for OAuth logins.

Maps an external identity ``(subject_id, email, name, picture)`` to a stable
internal user id and keeps the ``user:email:{email}`` pointer consistent with
the ``user:{id}`` profile it references.

Write order is profile first, pointer second, so a pointer written by this
module always resolves to an existing profile. The pointer is claimed with a
set-if-absent: when two first logins for the same email race, the first
pointer write wins and the loser adopts the winner's record.

A subject id that already owns a profile under another email moves that
profile to the new email: the role is kept and the old pointer is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError as PydanticValidationError

from habitbank.errors import UnauthorizedError
from habitbank.keys import email_pointer_key, normalize_email, profile_key
from habitbank.models import Role, UserProfile, dump_profile

if TYPE_CHECKING:
    from habitbank.store.base import KeyValueStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class OAuthIdentity:
    """What the identity provider tells us on each login."""

    subject_id: str
    email: str | None
    name: str | None = None
    picture: str | None = None


class ResolutionOutcome(str, Enum):
    CREATED = "created"
    EXISTING = "existing"
    RECREATED = "recreated"


@dataclass(frozen=True)
class ResolvedIdentity:
    user_id: str
    role: Role
    outcome: ResolutionOutcome
    profile: UserProfile


def _parse_profile(raw: str, user_id: str) -> UserProfile | None:
    try:
        return UserProfile.model_validate_json(raw)
    except PydanticValidationError:
        logger.warning("profile_unparseable", user_id=user_id)
        return None


async def load_profile(store: KeyValueStore, user_id: str) -> UserProfile | None:
    """Fetch and parse ``user:{id}``. Unparseable blobs count as missing."""
    raw = await store.get(profile_key(user_id))
    if raw is None:
        return None
    return _parse_profile(raw, user_id)


class IdentityResolver:
    """Resolve OAuth identities against the store."""

    def __init__(self, store: KeyValueStore, admin_email: str = "") -> None:
        self.store = store
        self.admin_email = normalize_email(admin_email) if admin_email else ""

    def role_for(self, email: str) -> Role:
        """Admin iff the email matches the configured admin address."""
        if self.admin_email and normalize_email(email) == self.admin_email:
            return Role.ADMIN
        return Role.USER

    def _new_profile(self, identity: OAuthIdentity, email: str, previous: UserProfile | None = None) -> UserProfile:
        """Profile for this login. A stored profile under the same id keeps its role."""
        return UserProfile(
            id=identity.subject_id,
            name=identity.name or (previous.name if previous else ""),
            email=email,
            image=identity.picture or (previous.image if previous else None),
            role=previous.role if previous is not None else self.role_for(email),
        )

    async def _release_old_pointer(self, previous: UserProfile | None, email: str) -> None:
        """Drop the pointer of the email this id used to have, if it still names this id."""
        if previous is None or normalize_email(previous.email) == email:
            return
        old_pointer = email_pointer_key(previous.email)
        if await self.store.get(old_pointer) == previous.id:
            await self.store.delete(old_pointer)
            logger.info("login_email_changed", user_id=previous.id, old_email=previous.email, email=email)

    async def resolve(self, identity: OAuthIdentity) -> ResolvedIdentity:
        """
        Produce the canonical user id for a login.

        Raises:
            UnauthorizedError: If the provider sent no email or no subject id.
        """
        if not identity.email or not identity.email.strip():
            logger.error("login_rejected", reason="missing_email", subject_id=identity.subject_id)
            msg = "No email provided by identity provider"
            raise UnauthorizedError(msg)
        if not identity.subject_id:
            msg = "No subject id provided by identity provider"
            raise UnauthorizedError(msg)

        email = normalize_email(identity.email)
        pointer = email_pointer_key(email)
        existing_id = await self.store.get(pointer)

        if existing_id is None:
            return await self._create(identity, email)

        profile = await load_profile(self.store, existing_id)
        if profile is not None:
            if existing_id != identity.subject_id:
                logger.info(
                    "login_subject_changed",
                    user_id=existing_id,
                    presented_subject_id=identity.subject_id,
                )
            return ResolvedIdentity(existing_id, profile.role, ResolutionOutcome.EXISTING, profile)

        return await self._recreate(identity, email, stale_id=existing_id)

    async def _create(self, identity: OAuthIdentity, email: str) -> ResolvedIdentity:
        """Brand-new email: write profile, then claim the pointer."""
        previous_raw = await self.store.get(profile_key(identity.subject_id))
        previous = _parse_profile(previous_raw, identity.subject_id) if previous_raw is not None else None
        profile = self._new_profile(identity, email, previous)
        await self.store.set(profile_key(profile.id), dump_profile(profile))

        if await self.store.set_if_absent(email_pointer_key(email), profile.id):
            await self._release_old_pointer(previous, email)
            logger.info("profile_created", user_id=profile.id, email=email, role=profile.role.value)
            return ResolvedIdentity(profile.id, profile.role, ResolutionOutcome.CREATED, profile)

        # Lost the race: someone else claimed this email between our read and write.
        winner_id = await self.store.get(email_pointer_key(email))
        logger.warning("pointer_race_lost", email=email, subject_id=profile.id, winner_id=winner_id)
        if winner_id is None or winner_id == profile.id:
            await self.store.set(email_pointer_key(email), profile.id)
            await self._release_old_pointer(previous, email)
            return ResolvedIdentity(profile.id, profile.role, ResolutionOutcome.CREATED, profile)

        if previous_raw is None:
            await self.store.delete(profile_key(profile.id))
        else:
            await self.store.set(profile_key(profile.id), previous_raw)
        winner = await load_profile(self.store, winner_id)
        if winner is None:
            return await self._recreate(identity, email, stale_id=winner_id)
        return ResolvedIdentity(winner_id, winner.role, ResolutionOutcome.EXISTING, winner)

    async def _recreate(self, identity: OAuthIdentity, email: str, stale_id: str) -> ResolvedIdentity:
        """Pointer exists but its profile is gone: rebuild under the current subject id."""
        previous = await load_profile(self.store, identity.subject_id)
        profile = self._new_profile(identity, email, previous)
        await self.store.set(profile_key(profile.id), dump_profile(profile))
        await self.store.set(email_pointer_key(email), profile.id)
        await self._release_old_pointer(previous, email)
        logger.warning("profile_recreated", user_id=profile.id, stale_id=stale_id, email=email)
        return ResolvedIdentity(profile.id, profile.role, ResolutionOutcome.RECREATED, profile)

    async def lookup_user_id_by_email(self, email: str) -> str | None:
        """Follow the email pointer, if any."""
        if not email:
            return None
        return await self.store.get(email_pointer_key(email))

    async def is_admin(self, user_id: str) -> bool:
        profile = await load_profile(self.store, user_id)
        return profile is not None and profile.is_admin
