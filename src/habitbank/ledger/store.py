"""Read/write of per-user aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError as PydanticValidationError

from habitbank.errors import StoreError
from habitbank.keys import LEGACY_DATA_KEY, LEGACY_USER_ID, data_key
from habitbank.models import UserData

if TYPE_CHECKING:
    from habitbank.store.base import KeyValueStore

logger = structlog.get_logger()


def aggregate_key(user_id: str) -> str:
    """Data key for a user id; the virtual ``legacy`` user maps to the pre-login blob."""
    if user_id == LEGACY_USER_ID:
        return LEGACY_DATA_KEY
    return data_key(user_id)


class UserDataStore:
    """CRUD over ``userData:{id}``. Each call re-reads the store."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    async def get(self, user_id: str) -> UserData:
        """Load a user's aggregate; an absent key reads as the empty aggregate."""
        raw = await self.store.get(aggregate_key(user_id))
        if raw is None:
            return UserData.empty()
        try:
            return UserData.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error("user_data_unparseable", user_id=user_id, error=str(e))
            msg = f"Invalid data format for user {user_id}"
            raise StoreError(msg) from e

    async def save(self, user_id: str, data: UserData) -> UserData:
        await self.store.set(aggregate_key(user_id), data.to_json())
        return data

    async def delete(self, user_id: str) -> bool:
        return await self.store.delete(aggregate_key(user_id)) > 0

    async def seed(self, new_user_id: str, source_user_id: str | None = None) -> None:
        """
        Initialize a new user's aggregate.

        With a source, the source blob is copied verbatim (no re-encoding), so
        the new aggregate is deep-equal to the source at this moment. Without a
        source, or when the source has no data, the empty aggregate is written.
        """
        if source_user_id:
            raw = await self.store.get(aggregate_key(source_user_id))
            if raw is not None:
                await self.store.set(data_key(new_user_id), raw)
                logger.info("user_data_seeded", user_id=new_user_id, source_user_id=source_user_id)
                return
            logger.warning("seed_source_empty", user_id=new_user_id, source_user_id=source_user_id)

        await self.store.set(data_key(new_user_id), UserData.empty().to_json())
