"""Redis-backed key-value store."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from habitbank.errors import StoreError
from habitbank.store.base import KeyValueStore

if TYPE_CHECKING:
    from collections.abc import Awaitable
    from typing import TypeVar

    T = TypeVar("T")

logger = structlog.get_logger()

# Redis MATCH patterns are globs; these characters must be escaped in a literal prefix.
_GLOB_CHARS = re.compile(r"([*?\[\]\\])")


def escape_glob(prefix: str) -> str:
    """Escape glob metacharacters so ``prefix`` matches literally."""
    return _GLOB_CHARS.sub(r"\\\1", prefix)


class RedisStore(KeyValueStore):
    """Thin adapter over ``redis.asyncio.Redis`` with ``decode_responses=True``."""

    def __init__(self, client: redis.Redis, scan_count: int = 500) -> None:
        self._client = client
        self._scan_count = scan_count

    @classmethod
    def from_url(cls, url: str) -> RedisStore:
        """Create a store with its own connection pool."""
        client = redis.from_url(  # type: ignore[no-untyped-call]
            url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
        return cls(client)

    async def _call(self, op: str, key: str, coro: Awaitable[T]) -> T:
        try:
            return await coro
        except RedisError as e:
            logger.error("store_call_failed", op=op, key=key, error=str(e))
            raise StoreError(str(e)) from e

    async def get(self, key: str) -> str | None:
        return await self._call("get", key, self._client.get(key))

    async def set(self, key: str, value: str) -> None:
        await self._call("set", key, self._client.set(key, value))

    async def set_if_absent(self, key: str, value: str) -> bool:
        result = await self._call("set_nx", key, self._client.set(key, value, nx=True))
        return bool(result)

    async def delete(self, key: str) -> int:
        return int(await self._call("delete", key, self._client.delete(key)))

    async def scan_prefix(self, prefix: str) -> list[str]:
        pattern = f"{escape_glob(prefix)}*"
        keys: list[str] = []
        try:
            async for key in self._client.scan_iter(match=pattern, count=self._scan_count):
                keys.append(key)
        except RedisError as e:
            logger.error("store_call_failed", op="scan", key=pattern, error=str(e))
            raise StoreError(str(e)) from e
        return sorted(set(keys))

    async def ping(self) -> bool:
        return bool(await self._call("ping", "", self._client.ping()))

    async def close(self) -> None:
        await self._client.aclose()
