"""Process-wide store handle."""

import structlog

from habitbank.config import Settings
from habitbank.store.base import KeyValueStore
from habitbank.store.memory import MemoryStore
from habitbank.store.redis_store import RedisStore

logger = structlog.get_logger()

_store: KeyValueStore | None = None


async def init_store(settings: Settings) -> KeyValueStore:
    """Initialize the store: Redis when configured, otherwise in-memory outside production."""
    global _store  # noqa: PLW0603
    if settings.redis_url:
        _store = RedisStore.from_url(settings.redis_url)
        logger.info("store_initialized", backend="redis")
    elif settings.allows_memory_store:
        _store = MemoryStore()
        logger.warning("store_initialized", backend="memory", reason="redis_url not set")
    else:
        msg = "HABITBANK_REDIS_URL is not set and the in-memory store is disabled in production."
        raise RuntimeError(msg)
    return _store


async def close_store() -> None:
    """Close the store and drop the handle."""
    global _store  # noqa: PLW0603
    if _store:
        await _store.close()
        _store = None


def set_store(store: KeyValueStore) -> None:
    """Install an already-built store (used by tests)."""
    global _store  # noqa: PLW0603
    _store = store


def get_store() -> KeyValueStore:
    """Get the store (FastAPI dependency)."""
    if _store is None:
        msg = "Store not initialized. Call init_store() first."
        raise RuntimeError(msg)
    return _store
