"""Result shapes of maintenance operations."""

from __future__ import annotations

from pydantic import BaseModel, Field

from habitbank.keys import KeyKind


class KeyInventory(BaseModel):
    """Every key in the store grouped by namespace."""

    keys: dict[KeyKind, list[str]] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(v) for v in self.keys.values())

    def of(self, kind: KeyKind) -> list[str]:
        return self.keys.get(kind, [])

    def counts(self) -> dict[str, int]:
        return {kind.value: len(keys) for kind, keys in self.keys.items()}


class DuplicateResolution(BaseModel):
    email: str
    kept_id: str
    deleted_ids: list[str] = Field(default_factory=list)
    skipped_admin_ids: list[str] = Field(default_factory=list)


class PointerRepairReport(BaseModel):
    deleted_pointers: list[str] = Field(default_factory=list)
    created_pointers: list[str] = Field(default_factory=list)


class CleanupReport(BaseModel):
    duplicate_sets: int = 0
    resolutions: list[DuplicateResolution] = Field(default_factory=list)
    deleted_keys: list[str] = Field(default_factory=list)
    unparseable_profiles: list[str] = Field(default_factory=list)
    pointers: PointerRepairReport = Field(default_factory=PointerRepairReport)

    @property
    def deleted_profiles(self) -> int:
        return sum(len(r.deleted_ids) for r in self.resolutions)


class MigrationReport(BaseModel):
    migrated: dict[str, str] = Field(default_factory=dict)
    discarded: list[str] = Field(default_factory=list)
    orphaned: list[str] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.migrated) + len(self.discarded) + len(self.orphaned)
