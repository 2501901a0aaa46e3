"""Keep policies for duplicate profile resolution.

A keep policy picks the one profile to retain out of a duplicate set. The
default is a heuristic, not a guarantee: provider-issued ids beat
admin-created ones, then the lexicographically smallest id wins as a proxy
for the oldest record.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from habitbank.keys import LEGACY_USER_ID
from habitbank.models import UserProfile

KeepPolicy = Callable[[Sequence[UserProfile]], UserProfile]

# Ids minted by the admin "create user" action: ``user-{epoch_ms}``.
ADMIN_CREATED_ID_PREFIX = "user-"


def is_provider_id(user_id: str) -> bool:
    """True when the id looks like it was issued by the OAuth provider."""
    return not user_id.startswith(ADMIN_CREATED_ID_PREFIX) and user_id != LEGACY_USER_ID


def prefer_provider_then_oldest(profiles: Sequence[UserProfile]) -> UserProfile:
    if not profiles:
        msg = "Cannot choose from an empty duplicate set"
        raise ValueError(msg)
    return min(profiles, key=lambda p: (not is_provider_id(p.id), p.id))


def prefer_oldest(profiles: Sequence[UserProfile]) -> UserProfile:
    """Ignore id provenance; keep the smallest id."""
    if not profiles:
        msg = "Cannot choose from an empty duplicate set"
        raise ValueError(msg)
    return min(profiles, key=lambda p: p.id)
