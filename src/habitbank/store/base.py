"""Key-value store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Async GET/SET/DEL/SCAN over string keys and string values.

    Implementations hold no business logic. Failures of the backing service
    are raised as ``habitbank.errors.StoreError``.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored at ``key``, or None."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Unconditionally write ``value`` at ``key``."""
        ...

    @abstractmethod
    async def set_if_absent(self, key: str, value: str) -> bool:
        """Write ``value`` only if ``key`` does not exist. Returns True if written."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> int:
        """Delete ``key``. Returns the number of keys removed (0 or 1)."""
        ...

    @abstractmethod
    async def scan_prefix(self, prefix: str) -> list[str]:
        """Return every key starting with ``prefix``, sorted. Empty prefix lists all keys."""
        ...

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
