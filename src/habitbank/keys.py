"""Store key namespace.

One builder per entity type. The email-keyed data blobs written by older
versions have no builder on purpose: only the maintenance migration needs to
recognise them, through ``parse_legacy_email_data_key``.

| Key                           | Holds                               |
|-------------------------------|-------------------------------------|
| ``user:{id}``                 | UserProfile JSON                    |
| ``user:email:{email}``        | owning user id (plain string)       |
| ``userData:{id}``             | UserData JSON                       |
| ``userData:email:{email}``    | legacy UserData JSON, migrated away |
| ``userData``                  | single-tenant UserData, pre-login   |
| ``rewards:catalog``           | global reward catalog JSON          |
"""

from __future__ import annotations

from enum import Enum

PROFILE_PREFIX = "user:"
POINTER_PREFIX = "user:email:"
DATA_PREFIX = "userData:"
LEGACY_EMAIL_DATA_PREFIX = "userData:email:"
LEGACY_DATA_KEY = "userData"
REWARD_CATALOG_KEY = "rewards:catalog"

# Virtual user id that addresses LEGACY_DATA_KEY in admin views.
LEGACY_USER_ID = "legacy"


class KeyKind(str, Enum):
    """Classification of a raw store key."""

    PROFILE = "profile"
    POINTER = "pointer"
    DATA = "data"
    LEGACY_EMAIL_DATA = "legacy_email_data"
    LEGACY_DATA = "legacy_data"
    CATALOG = "catalog"
    OTHER = "other"


def normalize_email(email: str) -> str:
    """Lowercase and trim an email so it can be used as a natural key."""
    return email.strip().lower()


def profile_key(user_id: str) -> str:
    return f"{PROFILE_PREFIX}{user_id}"


def email_pointer_key(email: str) -> str:
    return f"{POINTER_PREFIX}{normalize_email(email)}"


def data_key(user_id: str) -> str:
    return f"{DATA_PREFIX}{user_id}"


def _strip(key: str, prefix: str) -> str | None:
    if key.startswith(prefix) and len(key) > len(prefix):
        return key[len(prefix):]
    return None


def parse_pointer_key(key: str) -> str | None:
    """Return the normalized email of a pointer key, else None."""
    return _strip(key, POINTER_PREFIX)


def parse_profile_key(key: str) -> str | None:
    """Return the user id of a profile key, else None."""
    if key.startswith(POINTER_PREFIX):
        return None
    return _strip(key, PROFILE_PREFIX)


def parse_legacy_email_data_key(key: str) -> str | None:
    """Return the email of a legacy ``userData:email:*`` key, else None."""
    return _strip(key, LEGACY_EMAIL_DATA_PREFIX)


def parse_data_key(key: str) -> str | None:
    """Return the user id of an id-keyed data key, else None."""
    if key.startswith(LEGACY_EMAIL_DATA_PREFIX):
        return None
    return _strip(key, DATA_PREFIX)


def classify_key(key: str) -> KeyKind:
    """Classify a raw key by the namespace it belongs to."""
    if key == LEGACY_DATA_KEY:
        return KeyKind.LEGACY_DATA
    if key == REWARD_CATALOG_KEY:
        return KeyKind.CATALOG
    if parse_pointer_key(key) is not None:
        return KeyKind.POINTER
    if parse_profile_key(key) is not None:
        return KeyKind.PROFILE
    if parse_legacy_email_data_key(key) is not None:
        return KeyKind.LEGACY_EMAIL_DATA
    if parse_data_key(key) is not None:
        return KeyKind.DATA
    return KeyKind.OTHER
