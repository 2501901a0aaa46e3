"""Habit router: all /api/habits/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query

from habitbank.auth.dependencies import get_current_user
from habitbank.dependencies import get_user_data_store
from habitbank.errors import ForbiddenError
from habitbank.ledger.schemas import HabitClaimRequest, HabitClaimResponse
from habitbank.ledger.service import claim_habit, unclaim_habit
from habitbank.ledger.store import UserDataStore
from habitbank.models import UserData, UserProfile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/habits", tags=["Habits"])


def target_user_id(user: UserProfile, user_id: str | None) -> str:
    """The caller's own id, or another user's id when the caller is an admin."""
    if user_id is None or user_id == user.id:
        return user.id
    if not user.is_admin:
        msg = "Admin role required to access another user's data"
        raise ForbiddenError(msg)
    return user_id


@router.get("", response_model=UserData)
async def get_habits(
    user_id: str | None = Query(None),
    user: UserProfile = Depends(get_current_user),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> UserData:
    """Get the full aggregate: credits, habit log, rewards."""
    return await data_store.get(target_user_id(user, user_id))


@router.post("", response_model=UserData)
async def replace_habits(
    body: UserData,
    user_id: str | None = Query(None),
    user: UserProfile = Depends(get_current_user),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> UserData:
    """Overwrite the aggregate wholesale."""
    target = target_user_id(user, user_id)
    await data_store.save(target, body)
    logger.info("user_data_replaced", user_id=target, by=user.id)
    return body


@router.post("/claim", response_model=HabitClaimResponse)
async def claim(
    body: HabitClaimRequest,
    user: UserProfile = Depends(get_current_user),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> HabitClaimResponse:
    """Earn credits for a habit. Over the daily limit it is a no-op."""
    data = await data_store.get(user.id)
    record = claim_habit(data, body.habit, body.date, notes=body.notes)
    if record is not None:
        await data_store.save(user.id, data)
    return HabitClaimResponse(changed=record is not None, record=record, user_data=data)


@router.post("/unclaim", response_model=HabitClaimResponse)
async def unclaim(
    body: HabitClaimRequest,
    user: UserProfile = Depends(get_current_user),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> HabitClaimResponse:
    """Take back the latest claim of a habit on a day."""
    data = await data_store.get(user.id)
    record = unclaim_habit(data, body.habit, body.date)
    if record is not None:
        await data_store.save(user.id, data)
    return HabitClaimResponse(changed=record is not None, record=record, user_data=data)


@router.post("/reset")
async def reset(
    user: UserProfile = Depends(get_current_user),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> dict[str, object]:
    """Delete the caller's aggregate."""
    await data_store.delete(user.id)
    logger.info("user_data_reset", user_id=user.id)
    return {"success": True, "message": "Habit data reset"}
