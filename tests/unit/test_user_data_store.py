"""Per-user aggregate storage and account seeding."""

from __future__ import annotations

import pytest

from habitbank.errors import StoreError
from habitbank.keys import LEGACY_DATA_KEY, data_key
from habitbank.ledger.store import UserDataStore
from habitbank.models import UserData
from habitbank.store.memory import MemoryStore

SOURCE_BLOB = (
    '{"totalCredits":14,"habits":[{"date":"2025-03-01","habit":"exercise","action":"earn","credits":2}],'
    '"rewards":[{"id":"lego2","name":"Hogwarts","credits":15,"claimed":true}]}'
)


class TestUserDataStore:
    async def test_missing_reads_as_empty(self):
        data = await UserDataStore(MemoryStore()).get("nobody")
        assert data == UserData.empty()

    async def test_save_and_get(self):
        store = MemoryStore()
        data_store = UserDataStore(store)
        await data_store.save("42", UserData(total_credits=4))
        assert (await data_store.get("42")).total_credits == 4
        assert data_key("42") in store.snapshot()

    async def test_unparseable_blob_is_a_store_error(self):
        store = MemoryStore({data_key("42"): "not json"})
        with pytest.raises(StoreError):
            await UserDataStore(store).get("42")

    async def test_legacy_user_reads_legacy_key(self):
        store = MemoryStore({LEGACY_DATA_KEY: SOURCE_BLOB})
        data = await UserDataStore(store).get("legacy")
        assert data.total_credits == 14


class TestSeed:
    async def test_seed_copies_source_verbatim(self):
        store = MemoryStore({data_key("source"): SOURCE_BLOB})
        data_store = UserDataStore(store)
        await data_store.seed("new", "source")
        assert store.snapshot()[data_key("new")] == SOURCE_BLOB
        assert await data_store.get("new") == await data_store.get("source")

    async def test_seed_from_legacy(self):
        store = MemoryStore({LEGACY_DATA_KEY: SOURCE_BLOB})
        await UserDataStore(store).seed("new", "legacy")
        assert store.snapshot()[data_key("new")] == SOURCE_BLOB

    async def test_seed_without_source_is_empty(self):
        store = MemoryStore()
        data_store = UserDataStore(store)
        await data_store.seed("new")
        assert await data_store.get("new") == UserData.empty()
        assert data_key("new") in store.snapshot()

    async def test_seed_from_empty_source_is_empty(self):
        store = MemoryStore()
        await UserDataStore(store).seed("new", "ghost")
        assert await UserDataStore(store).get("new") == UserData.empty()
