"""Global reward catalog stored as one JSON list."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from habitbank.errors import NotFoundError, StoreError, ValidationError
from habitbank.keys import REWARD_CATALOG_KEY
from habitbank.models import Reward

if TYPE_CHECKING:
    from habitbank.store.base import KeyValueStore

_rewards_adapter = TypeAdapter(list[Reward])


class RewardCatalog:
    """Rewards an admin can hand out. Claiming never touches the catalog."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    async def list_rewards(self) -> list[Reward]:
        raw = await self.store.get(REWARD_CATALOG_KEY)
        if raw is None:
            return []
        try:
            return _rewards_adapter.validate_json(raw)
        except PydanticValidationError as e:
            msg = "Invalid reward catalog format"
            raise StoreError(msg) from e

    async def _write(self, rewards: list[Reward]) -> None:
        await self.store.set(
            REWARD_CATALOG_KEY,
            _rewards_adapter.dump_json(rewards, by_alias=True, exclude_none=True).decode(),
        )

    async def get(self, reward_id: str) -> Reward:
        for reward in await self.list_rewards():
            if reward.id == reward_id:
                return reward
        msg = f"Reward not found: {reward_id}"
        raise NotFoundError(msg)

    async def add(self, reward: Reward) -> Reward:
        """Append a reward. Catalog entries are always stored unclaimed."""
        rewards = await self.list_rewards()
        if any(r.id == reward.id for r in rewards):
            msg = f"Reward id already exists: {reward.id}"
            raise ValidationError(msg)
        entry = reward.model_copy(update={"claimed": False})
        rewards.append(entry)
        await self._write(rewards)
        return entry

    async def remove(self, reward_id: str) -> Reward:
        rewards = await self.list_rewards()
        for index, reward in enumerate(rewards):
            if reward.id == reward_id:
                del rewards[index]
                await self._write(rewards)
                return reward
        msg = f"Reward not found: {reward_id}"
        raise NotFoundError(msg)
