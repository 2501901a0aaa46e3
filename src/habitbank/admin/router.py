"""Admin router: /api/users endpoints (admin role required)."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, Depends

from habitbank.admin.schemas import AdminActionRequest, UserListResponse
from habitbank.admin.service import create_user, delete_user, give_reward, list_users, take_reward
from habitbank.auth.dependencies import require_admin
from habitbank.dependencies import get_maintenance_toolkit, get_user_data_store
from habitbank.errors import ValidationError
from habitbank.ledger.store import UserDataStore
from habitbank.maintenance.toolkit import MaintenanceToolkit
from habitbank.models import UserProfile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/users", tags=["Admin"])

ActionHandler = Callable[[AdminActionRequest, MaintenanceToolkit, UserDataStore], Awaitable[dict[str, Any]]]


def _require(value: Any, message: str) -> Any:  # noqa: ANN401
    if value is None or value == "":
        raise ValidationError(message)
    return value


# ---------------------------------------------------------------------------
# Users and their data
# ---------------------------------------------------------------------------


async def _get_user_data(body: AdminActionRequest, _toolkit: MaintenanceToolkit, data: UserDataStore) -> dict[str, Any]:
    user_id = _require(body.user_id, "User ID is required")
    user_data = await data.get(user_id)
    return {"userId": user_id, "userData": user_data.model_dump(by_alias=True, mode="json", exclude_none=True)}


async def _update_user_data(body: AdminActionRequest, _toolkit: MaintenanceToolkit, data: UserDataStore) -> dict[str, Any]:
    user_id = _require(body.user_id, "User ID and data are required")
    user_data = _require(body.user_data, "User ID and data are required")
    await data.save(user_id, user_data)
    return {
        "success": True,
        "userId": user_id,
        "userData": user_data.model_dump(by_alias=True, mode="json", exclude_none=True),
    }


async def _create_user(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    new_user = _require(body.new_user, "User email and name are required")
    profile = await create_user(
        toolkit.store,
        name=new_user.name,
        email=new_user.email,
        image=new_user.image,
        source_user_id=body.source_user_id,
    )
    return {"success": True, "user": profile.model_dump(mode="json")}


async def _delete_user(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    user_id = _require(body.user_id, "User ID is required")
    profile = await delete_user(toolkit.store, user_id)
    return {"success": True, "user": profile.model_dump(mode="json")}


async def _assign_reward(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    user_id = _require(body.user_id, "User ID is required")
    reward_id = _require(body.reward_id, "Reward ID is required")
    reward, user_data = await give_reward(toolkit.store, user_id, reward_id)
    return {
        "success": True,
        "reward": reward.model_dump(by_alias=True, mode="json", exclude_none=True),
        "userData": user_data.model_dump(by_alias=True, mode="json", exclude_none=True),
    }


async def _remove_user_reward(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    user_id = _require(body.user_id, "User ID is required")
    reward_id = _require(body.reward_id, "Reward ID is required")
    reward, user_data = await take_reward(toolkit.store, user_id, reward_id)
    return {
        "success": True,
        "reward": reward.model_dump(by_alias=True, mode="json", exclude_none=True),
        "userData": user_data.model_dump(by_alias=True, mode="json", exclude_none=True),
    }


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


async def _cleanup_duplicates(_body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    report = await toolkit.cleanup_duplicates()
    return {
        "success": True,
        "message": f"Resolved {report.duplicate_sets} duplicate sets, deleted {report.deleted_profiles} profiles",
        "report": report.model_dump(mode="json"),
    }


async def _fix_email_based_keys(_body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    report = await toolkit.migrate_email_keys()
    return {
        "success": True,
        "message": f"Processed {report.processed} email-based keys",
        "report": report.model_dump(mode="json"),
    }


async def _repair_pointers(_body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    report = await toolkit.repair_pointers()
    return {"success": True, "report": report.model_dump(mode="json")}


async def _list_all_keys(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    if body.prefix:
        keys = await toolkit.list_keys(body.prefix)
        return {"keys": keys, "total": len(keys)}
    inventory = await toolkit.enumerate()
    return {
        "keys": sorted(key for keys in inventory.keys.values() for key in keys),
        "total": inventory.total,
        "byKind": {kind.value: keys for kind, keys in inventory.keys.items()},
        "counts": inventory.counts(),
    }


async def _get_key(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    key = _require(body.key, "Key is required")
    return {"key": key, "value": await toolkit.get_key(key)}


async def _set_key(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    key = _require(body.key, "Key and value are required")
    value = _require(body.value, "Key and value are required")
    await toolkit.set_key(key, value)
    return {"success": True, "key": key}


async def _delete_key(body: AdminActionRequest, toolkit: MaintenanceToolkit, _data: UserDataStore) -> dict[str, Any]:
    key = _require(body.key, "Key is required")
    await toolkit.delete_key(key)
    return {"success": True, "key": key}


_ACTIONS: dict[str, ActionHandler] = {
    "getUserData": _get_user_data,
    "updateUserData": _update_user_data,
    "createUser": _create_user,
    "deleteUser": _delete_user,
    "assignReward": _assign_reward,
    "removeUserReward": _remove_user_reward,
    "cleanupDuplicates": _cleanup_duplicates,
    "fixEmailBasedKeys": _fix_email_based_keys,
    "repairPointers": _repair_pointers,
    "listAllRedisKeys": _list_all_keys,
    "getRedisKey": _get_key,
    "setRedisKey": _set_key,
    "deleteRedisKey": _delete_key,
}


@router.get("", response_model=UserListResponse)
async def get_users(
    _admin: UserProfile = Depends(require_admin),
    toolkit: MaintenanceToolkit = Depends(get_maintenance_toolkit),
) -> UserListResponse:
    """List every stored profile plus the virtual legacy user."""
    return UserListResponse(users=await list_users(toolkit))


@router.post("")
async def run_action(
    body: AdminActionRequest,
    admin: UserProfile = Depends(require_admin),
    toolkit: MaintenanceToolkit = Depends(get_maintenance_toolkit),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> dict[str, Any]:
    """Dispatch an admin action by name."""
    handler = _ACTIONS.get(body.action)
    if handler is None:
        msg = "Invalid action"
        raise ValidationError(msg)
    logger.info("admin_action", action=body.action, admin_id=admin.id, user_id=body.user_id, key=body.key)
    return await handler(body, toolkit, data_store)
