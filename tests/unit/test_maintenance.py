"""Duplicate cleanup, pointer repair and legacy data migration."""

from __future__ import annotations

import pytest

from conftest import save_user
from habitbank.errors import NotFoundError, ValidationError
from habitbank.keys import KeyKind, data_key, email_pointer_key, profile_key
from habitbank.maintenance.policy import is_provider_id, prefer_oldest, prefer_provider_then_oldest
from habitbank.maintenance.toolkit import MaintenanceToolkit
from habitbank.models import Role, UserProfile, dump_profile
from habitbank.store.memory import MemoryStore

BOB = "bob@example.com"


async def _duplicate_store() -> MemoryStore:
    """Two profiles share one email; the pointer names the admin-created one."""
    store = MemoryStore()
    await save_user(store, "google-oauth2-1", BOB)
    await save_user(store, "user-1000", BOB)
    await store.set(data_key("google-oauth2-1"), '{"totalCredits":5,"habits":[],"rewards":[]}')
    await store.set(data_key("user-1000"), '{"totalCredits":9,"habits":[],"rewards":[]}')
    return store


class TestKeepPolicy:
    def test_provider_ids(self):
        assert is_provider_id("104512345678901234567")
        assert is_provider_id("google-oauth2-1")
        assert not is_provider_id("user-1700000000000")
        assert not is_provider_id("legacy")

    def test_provider_beats_admin_created(self):
        profiles = [UserProfile(id="user-1", email=BOB), UserProfile(id="zzz", email=BOB)]
        assert prefer_provider_then_oldest(profiles).id == "zzz"
        assert prefer_oldest(profiles).id == "user-1"

    def test_empty_set(self):
        with pytest.raises(ValueError):
            prefer_provider_then_oldest([])


class TestEnumerate:
    async def test_keys_are_classified(self):
        store = await _duplicate_store()
        await store.set("userData:email:old@example.com", "{}")
        await store.set("userData", "{}")
        await store.set("something:else", "x")
        inventory = await MaintenanceToolkit(store).enumerate()

        assert inventory.total == 8
        assert inventory.of(KeyKind.PROFILE) == [profile_key("google-oauth2-1"), profile_key("user-1000")]
        assert inventory.of(KeyKind.POINTER) == [email_pointer_key(BOB)]
        assert inventory.of(KeyKind.LEGACY_EMAIL_DATA) == ["userData:email:old@example.com"]
        assert inventory.of(KeyKind.LEGACY_DATA) == ["userData"]
        assert inventory.of(KeyKind.OTHER) == ["something:else"]


class TestCleanupDuplicates:
    async def test_keeps_provider_id_and_repoints(self):
        store = await _duplicate_store()
        toolkit = MaintenanceToolkit(store)
        assert list(await toolkit.find_duplicates()) == [BOB]

        report = await toolkit.cleanup_duplicates()

        snapshot = store.snapshot()
        assert report.duplicate_sets == 1
        assert report.deleted_profiles == 1
        assert report.resolutions[0].kept_id == "google-oauth2-1"
        assert snapshot[email_pointer_key(BOB)] == "google-oauth2-1"
        assert profile_key("user-1000") not in snapshot
        assert data_key("user-1000") not in snapshot
        assert data_key("google-oauth2-1") in snapshot
        assert await toolkit.find_duplicates() == {}

    async def test_second_run_changes_nothing(self):
        store = await _duplicate_store()
        toolkit = MaintenanceToolkit(store)
        await toolkit.cleanup_duplicates()
        before = store.snapshot()

        report = await toolkit.cleanup_duplicates()

        assert report.duplicate_sets == 0
        assert report.deleted_keys == []
        assert report.pointers.deleted_pointers == []
        assert report.pointers.created_pointers == []
        assert store.snapshot() == before

    async def test_admins_are_never_deleted(self):
        store = MemoryStore()
        await save_user(store, "google-oauth2-1", BOB)
        await save_user(store, "user-1000", BOB, role=Role.ADMIN)
        await store.set(data_key("google-oauth2-1"), '{"totalCredits":40,"habits":[],"rewards":[]}')
        report = await MaintenanceToolkit(store).cleanup_duplicates()

        resolution = report.resolutions[0]
        assert resolution.kept_id == "google-oauth2-1"
        assert resolution.deleted_ids == []
        assert resolution.skipped_admin_ids == ["user-1000"]
        snapshot = store.snapshot()
        assert profile_key("user-1000") in snapshot
        assert data_key("google-oauth2-1") in snapshot
        assert snapshot[email_pointer_key(BOB)] == "google-oauth2-1"

    async def test_profile_stored_under_wrong_key_is_left_alone(self):
        store = MemoryStore()
        await save_user(store, "333", BOB)
        await store.set(profile_key("111"), dump_profile(UserProfile(id="222", email=BOB)))
        toolkit = MaintenanceToolkit(store)

        report = await toolkit.cleanup_duplicates()

        assert report.duplicate_sets == 0
        assert report.unparseable_profiles == ["111"]
        assert profile_key("111") in store.snapshot()
        assert profile_key("333") in store.snapshot()
        assert (await toolkit.cleanup_duplicates()).deleted_keys == []

    async def test_two_admins_both_survive(self):
        store = MemoryStore()
        await save_user(store, "111", BOB, role=Role.ADMIN)
        await save_user(store, "222", BOB, role=Role.ADMIN)
        report = await MaintenanceToolkit(store).cleanup_duplicates()

        assert report.resolutions[0].kept_id == "111"
        assert report.resolutions[0].skipped_admin_ids == ["222"]
        assert profile_key("222") in store.snapshot()
        assert store.snapshot()[email_pointer_key(BOB)] == "111"

    async def test_emails_compared_case_insensitively(self):
        store = MemoryStore()
        await save_user(store, "111", BOB)
        await store.set(profile_key("222"), dump_profile(UserProfile(id="222", email="Bob@Example.com")))
        groups = await MaintenanceToolkit(store).find_duplicates()
        assert [p.id for p in groups[BOB]] == ["111", "222"]

    async def test_custom_keep_policy(self):
        store = await _duplicate_store()
        report = await MaintenanceToolkit(store, keep_policy=lambda ps: ps[-1]).cleanup_duplicates()
        assert report.resolutions[0].kept_id == "user-1000"


class TestRepairPointers:
    async def test_dangling_pointer_deleted(self):
        store = MemoryStore({email_pointer_key("ghost@example.com"): "gone"})
        report = await MaintenanceToolkit(store).repair_pointers()
        assert report.deleted_pointers == [email_pointer_key("ghost@example.com")]
        assert store.snapshot() == {}

    async def test_pointer_to_profile_with_other_email_deleted(self):
        store = MemoryStore()
        await save_user(store, "111", BOB)
        await store.set(email_pointer_key("carol@example.com"), "111")
        report = await MaintenanceToolkit(store).repair_pointers()
        assert report.deleted_pointers == [email_pointer_key("carol@example.com")]
        assert store.snapshot()[email_pointer_key(BOB)] == "111"

    async def test_missing_pointer_created(self):
        store = MemoryStore()
        await store.set(profile_key("111"), dump_profile(UserProfile(id="111", email=BOB)))
        report = await MaintenanceToolkit(store).repair_pointers()
        assert report.created_pointers == [email_pointer_key(BOB)]
        assert store.snapshot()[email_pointer_key(BOB)] == "111"

    async def test_pointer_to_unparseable_profile_left_alone(self):
        store = MemoryStore({profile_key("111"): "{broken", email_pointer_key(BOB): "111"})
        report = await MaintenanceToolkit(store).repair_pointers()
        assert report.deleted_pointers == []
        assert store.snapshot()[email_pointer_key(BOB)] == "111"


class TestMigrateEmailKeys:
    async def test_moves_blob_to_owner(self):
        store = MemoryStore()
        await save_user(store, "111", BOB)
        await store.set("userData:email:bob@example.com", '{"totalCredits":3}')
        report = await MaintenanceToolkit(store).migrate_email_keys()

        snapshot = store.snapshot()
        assert report.migrated == {"userData:email:bob@example.com": data_key("111")}
        assert snapshot[data_key("111")] == '{"totalCredits":3}'
        assert "userData:email:bob@example.com" not in snapshot

    async def test_existing_id_data_wins(self):
        store = MemoryStore()
        await save_user(store, "111", BOB)
        await store.set(data_key("111"), '{"totalCredits":7}')
        await store.set("userData:email:bob@example.com", '{"totalCredits":3}')
        report = await MaintenanceToolkit(store).migrate_email_keys()

        assert report.discarded == ["userData:email:bob@example.com"]
        assert store.snapshot()[data_key("111")] == '{"totalCredits":7}'

    async def test_orphans_deleted(self):
        store = MemoryStore({"userData:email:ghost@example.com": "{}"})
        report = await MaintenanceToolkit(store).migrate_email_keys()
        assert report.orphaned == ["userData:email:ghost@example.com"]
        assert report.processed == 1
        assert store.snapshot() == {}

    async def test_rerun_is_noop(self):
        store = MemoryStore()
        await save_user(store, "111", BOB)
        await store.set("userData:email:bob@example.com", "{}")
        toolkit = MaintenanceToolkit(store)
        await toolkit.migrate_email_keys()
        before = store.snapshot()
        assert (await toolkit.migrate_email_keys()).processed == 0
        assert store.snapshot() == before


class TestManualKeys:
    async def test_set_get_delete(self):
        store = MemoryStore()
        toolkit = MaintenanceToolkit(store)
        await toolkit.set_key("anything", "value")
        assert await toolkit.get_key("anything") == "value"
        assert await toolkit.list_keys("any") == ["anything"]
        await toolkit.delete_key("anything")
        assert store.snapshot() == {}

    async def test_missing_keys(self):
        toolkit = MaintenanceToolkit(MemoryStore())
        with pytest.raises(NotFoundError):
            await toolkit.get_key("nope")
        with pytest.raises(NotFoundError):
            await toolkit.delete_key("nope")

    async def test_empty_key_rejected(self):
        with pytest.raises(ValidationError):
            await MaintenanceToolkit(MemoryStore()).set_key("", "v")
