"""Shared FastAPI dependencies: services built around the injected store."""

from fastapi import Depends

from habitbank.auth.resolver import IdentityResolver
from habitbank.config import get_settings
from habitbank.ledger.catalog import RewardCatalog
from habitbank.ledger.store import UserDataStore
from habitbank.maintenance.toolkit import MaintenanceToolkit
from habitbank.store.base import KeyValueStore
from habitbank.store.client import get_store


def get_identity_resolver(store: KeyValueStore = Depends(get_store)) -> IdentityResolver:
    return IdentityResolver(store, admin_email=get_settings().admin_email)


def get_user_data_store(store: KeyValueStore = Depends(get_store)) -> UserDataStore:
    return UserDataStore(store)


def get_reward_catalog(store: KeyValueStore = Depends(get_store)) -> RewardCatalog:
    return RewardCatalog(store)


def get_maintenance_toolkit(store: KeyValueStore = Depends(get_store)) -> MaintenanceToolkit:
    return MaintenanceToolkit(store)
