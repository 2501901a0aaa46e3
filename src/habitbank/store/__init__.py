"""Key-value store adapters."""

from habitbank.store.base import KeyValueStore
from habitbank.store.memory import MemoryStore
from habitbank.store.redis_store import RedisStore

__all__ = ["KeyValueStore", "MemoryStore", "RedisStore"]
