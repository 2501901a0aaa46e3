"""
Operator-triggered store maintenance.

Repairs the drift the rest of the system tolerates: several profiles sharing
one email, pointers that reference nothing, and data blobs still keyed by
email instead of user id. Every operation scans the store, holds no lock,
and can be re-run; a second run after a clean pass changes nothing.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError as PydanticValidationError

from habitbank.errors import NotFoundError, ValidationError
from habitbank.keys import (
    LEGACY_EMAIL_DATA_PREFIX,
    POINTER_PREFIX,
    PROFILE_PREFIX,
    classify_key,
    data_key,
    email_pointer_key,
    normalize_email,
    parse_legacy_email_data_key,
    parse_pointer_key,
    parse_profile_key,
    profile_key,
)
from habitbank.maintenance.policy import KeepPolicy, prefer_provider_then_oldest
from habitbank.maintenance.reports import (
    CleanupReport,
    DuplicateResolution,
    KeyInventory,
    MigrationReport,
    PointerRepairReport,
)
from habitbank.models import UserProfile

if TYPE_CHECKING:
    from habitbank.store.base import KeyValueStore

logger = structlog.get_logger()


class MaintenanceToolkit:
    """Scan-and-repair operations over the raw key namespace."""

    def __init__(self, store: KeyValueStore, keep_policy: KeepPolicy = prefer_provider_then_oldest) -> None:
        self.store = store
        self.keep_policy = keep_policy

    # ------------------------------------------------------------------
    # Enumerate
    # ------------------------------------------------------------------

    async def enumerate(self) -> KeyInventory:
        """Classify every key in the store."""
        inventory = KeyInventory()
        for key in await self.store.scan_prefix(""):
            inventory.keys.setdefault(classify_key(key), []).append(key)
        return inventory

    async def load_profiles(self) -> tuple[list[UserProfile], list[str]]:
        """
        Parse every ``user:{id}`` key.

        Returns:
            Tuple of (profiles, ids whose blob could not be parsed or whose
            JSON id differs from the key). Every repair leaves those alone.
        """
        profiles: list[UserProfile] = []
        unparseable: list[str] = []
        for key in await self.store.scan_prefix(PROFILE_PREFIX):
            user_id = parse_profile_key(key)
            if user_id is None:
                continue
            raw = await self.store.get(key)
            if raw is None:
                continue  # deleted since the scan
            try:
                profile = UserProfile.model_validate_json(raw)
            except PydanticValidationError:
                logger.warning("profile_unparseable", key=key)
                unparseable.append(user_id)
                continue
            if profile.id != user_id:
                logger.warning("profile_id_mismatch", key=key, json_id=profile.id)
                unparseable.append(user_id)
                continue
            profiles.append(profile)
        return profiles, unparseable

    # ------------------------------------------------------------------
    # Duplicates
    # ------------------------------------------------------------------

    @staticmethod
    def group_duplicates(profiles: list[UserProfile]) -> dict[str, list[UserProfile]]:
        groups: dict[str, list[UserProfile]] = defaultdict(list)
        for profile in profiles:
            groups[normalize_email(profile.email)].append(profile)
        return {
            email: sorted(members, key=lambda p: p.id)
            for email, members in sorted(groups.items())
            if len(members) > 1
        }

    async def find_duplicates(self) -> dict[str, list[UserProfile]]:
        """Profiles grouped by normalized email, only groups with more than one member."""
        profiles, _ = await self.load_profiles()
        return self.group_duplicates(profiles)

    def choose_keeper(self, profiles: list[UserProfile]) -> UserProfile:
        """Apply the keep policy to the whole set. Admins are protected from deletion, not preferred."""
        return self.keep_policy(profiles)

    async def resolve_duplicate_set(self, email: str, profiles: list[UserProfile]) -> DuplicateResolution:
        """Keep one profile, delete the rest (never admins), repoint the email."""
        keeper = self.choose_keeper(profiles)
        resolution = DuplicateResolution(email=email, kept_id=keeper.id)

        for profile in profiles:
            if profile.id == keeper.id:
                continue
            if profile.is_admin:
                resolution.skipped_admin_ids.append(profile.id)
                continue
            await self.store.delete(profile_key(profile.id))
            await self.store.delete(data_key(profile.id))
            resolution.deleted_ids.append(profile.id)

        await self.store.set(email_pointer_key(email), keeper.id)
        logger.info(
            "duplicate_set_resolved",
            email=email,
            kept_id=keeper.id,
            deleted_ids=resolution.deleted_ids,
            skipped_admin_ids=resolution.skipped_admin_ids,
        )
        return resolution

    async def cleanup_duplicates(self) -> CleanupReport:
        """Resolve every duplicate set, then repair pointers."""
        profiles, unparseable = await self.load_profiles()
        groups = self.group_duplicates(profiles)

        report = CleanupReport(duplicate_sets=len(groups), unparseable_profiles=unparseable)
        for email, members in groups.items():
            resolution = await self.resolve_duplicate_set(email, members)
            report.resolutions.append(resolution)
            for user_id in resolution.deleted_ids:
                report.deleted_keys.extend([profile_key(user_id), data_key(user_id)])

        report.pointers = await self.repair_pointers()
        logger.info(
            "cleanup_finished",
            duplicate_sets=report.duplicate_sets,
            deleted_profiles=report.deleted_profiles,
            deleted_pointers=len(report.pointers.deleted_pointers),
            created_pointers=len(report.pointers.created_pointers),
        )
        return report

    # ------------------------------------------------------------------
    # Pointers
    # ------------------------------------------------------------------

    async def repair_pointers(self) -> PointerRepairReport:
        """
        Restore "pointer exists iff a profile with that email exists".

        Deletes pointers whose target profile is missing or carries another
        email; creates pointers for emails that have profiles but no pointer.
        Pointers to profiles that exist but cannot be parsed are left alone.
        """
        profiles, unparseable = await self.load_profiles()
        by_id = {p.id: p for p in profiles}
        report = PointerRepairReport()

        for key in await self.store.scan_prefix(POINTER_PREFIX):
            email = parse_pointer_key(key)
            target = await self.store.get(key)
            if email is None or target is None or target in unparseable:
                continue
            profile = by_id.get(target)
            if profile is None or normalize_email(profile.email) != email:
                await self.store.delete(key)
                report.deleted_pointers.append(key)
                logger.info("pointer_deleted", key=key, target=target)

        by_email: dict[str, list[UserProfile]] = defaultdict(list)
        for profile in profiles:
            by_email[normalize_email(profile.email)].append(profile)
        for email, members in sorted(by_email.items()):
            keeper = self.choose_keeper(members)
            key = email_pointer_key(email)
            if await self.store.set_if_absent(key, keeper.id):
                report.created_pointers.append(key)
                logger.info("pointer_created", key=key, target=keeper.id)

        return report

    # ------------------------------------------------------------------
    # Legacy email-keyed data
    # ------------------------------------------------------------------

    async def migrate_email_keys(self) -> MigrationReport:
        """
        Move ``userData:email:{email}`` blobs to ``userData:{id}``.

        The owner is found through the email pointer and must have a profile.
        Existing id-keyed data is canonical: when present the email blob is
        discarded instead of copied. Blobs with no owner are deleted.
        """
        report = MigrationReport()
        for key in await self.store.scan_prefix(LEGACY_EMAIL_DATA_PREFIX):
            email = parse_legacy_email_data_key(key)
            raw = await self.store.get(key)
            if email is None or raw is None:
                continue

            owner_id = await self.store.get(email_pointer_key(email))
            if owner_id is not None and await self.store.get(profile_key(owner_id)) is None:
                owner_id = None

            if owner_id is None:
                report.orphaned.append(key)
                logger.warning("legacy_data_orphaned", key=key)
            elif await self.store.set_if_absent(data_key(owner_id), raw):
                report.migrated[key] = data_key(owner_id)
                logger.info("legacy_data_migrated", key=key, user_id=owner_id)
            else:
                report.discarded.append(key)
                logger.warning("legacy_data_discarded", key=key, user_id=owner_id)

            await self.store.delete(key)
        return report

    # ------------------------------------------------------------------
    # Manual key edits
    # ------------------------------------------------------------------

    async def list_keys(self, prefix: str = "") -> list[str]:
        return await self.store.scan_prefix(prefix)

    async def get_key(self, key: str) -> str:
        value = await self.store.get(key)
        if value is None:
            msg = f"Key not found: {key}"
            raise NotFoundError(msg)
        return value

    async def set_key(self, key: str, value: str) -> None:
        """Write any key. No naming-convention checks."""
        if not key:
            msg = "Key is required"
            raise ValidationError(msg)
        await self.store.set(key, value)
        logger.warning("manual_key_set", key=key, kind=classify_key(key).value)

    async def delete_key(self, key: str) -> None:
        if not key:
            msg = "Key is required"
            raise ValidationError(msg)
        if await self.store.delete(key) == 0:
            msg = f"Key not found: {key}"
            raise NotFoundError(msg)
        logger.warning("manual_key_deleted", key=key, kind=classify_key(key).value)

