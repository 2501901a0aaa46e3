"""In-process store used when no Redis URL is configured, and by tests."""

from __future__ import annotations

from habitbank.store.base import KeyValueStore


class MemoryStore(KeyValueStore):
    """Dict-backed store. Contents live only as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def set_if_absent(self, key: str, value: str) -> bool:
        if key in self._data:
            return False
        self._data[key] = value
        return True

    async def delete(self, key: str) -> int:
        return 1 if self._data.pop(key, None) is not None else 0

    async def scan_prefix(self, prefix: str) -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def snapshot(self) -> dict[str, str]:
        """Copy of the current contents (for assertions and debugging)."""
        return dict(self._data)
