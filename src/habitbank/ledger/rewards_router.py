"""Reward router: all /api/rewards/* endpoints."""

from __future__ import annotations

import secrets
import time

import structlog
from fastapi import APIRouter, Depends, Header, Query

from habitbank.auth.dependencies import get_current_user, require_admin
from habitbank.config import get_settings
from habitbank.dependencies import get_reward_catalog, get_user_data_store
from habitbank.errors import UnauthorizedError
from habitbank.ledger.catalog import RewardCatalog
from habitbank.ledger.schemas import (
    CreditResetRequest,
    CreditResetResponse,
    RewardCreateRequest,
    RewardListResponse,
    RewardMutationResponse,
)
from habitbank.ledger.service import claim_reward, reset_credits, unclaim_reward
from habitbank.ledger.store import UserDataStore
from habitbank.models import Reward, UserData, UserProfile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/rewards", tags=["Rewards"])


# ---------------------------------------------------------------------------
# Global catalog
# ---------------------------------------------------------------------------


@router.get("", response_model=RewardListResponse)
async def list_catalog(
    _user: UserProfile = Depends(get_current_user),
    catalog: RewardCatalog = Depends(get_reward_catalog),
) -> RewardListResponse:
    """List the global reward catalog."""
    return RewardListResponse(rewards=await catalog.list_rewards())


@router.post("", response_model=RewardMutationResponse)
async def add_to_catalog(
    body: RewardCreateRequest,
    admin: UserProfile = Depends(require_admin),
    catalog: RewardCatalog = Depends(get_reward_catalog),
) -> RewardMutationResponse:
    """Add a reward to the catalog (admin)."""
    reward = Reward(
        id=body.id or f"reward-{int(time.time() * 1000)}",
        name=body.name,
        credits=body.credits,
        img_url=body.img_url,
        external_url=body.external_url,
    )
    reward = await catalog.add(reward)
    logger.info("catalog_reward_added", reward_id=reward.id, by=admin.id)
    return RewardMutationResponse(reward=reward)


@router.delete("", response_model=RewardMutationResponse)
async def remove_from_catalog(
    reward_id: str = Query(..., alias="id", min_length=1),
    admin: UserProfile = Depends(require_admin),
    catalog: RewardCatalog = Depends(get_reward_catalog),
) -> RewardMutationResponse:
    """Remove a reward from the catalog (admin). Users' own copies are untouched."""
    reward = await catalog.remove(reward_id)
    logger.info("catalog_reward_removed", reward_id=reward_id, by=admin.id)
    return RewardMutationResponse(reward=reward)


# ---------------------------------------------------------------------------
# Per-user claims
# ---------------------------------------------------------------------------


@router.post("/{reward_id}/claim", response_model=UserData)
async def claim(
    reward_id: str,
    user: UserProfile = Depends(get_current_user),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> UserData:
    """Spend credits on one of the caller's rewards."""
    data = await data_store.get(user.id)
    claim_reward(data, reward_id)
    await data_store.save(user.id, data)
    logger.info("reward_claimed", user_id=user.id, reward_id=reward_id)
    return data


@router.post("/{reward_id}/unclaim", response_model=UserData)
async def unclaim(
    reward_id: str,
    user: UserProfile = Depends(get_current_user),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> UserData:
    """Give a claimed reward back and refund its credits."""
    data = await data_store.get(user.id)
    unclaim_reward(data, reward_id)
    await data_store.save(user.id, data)
    logger.info("reward_unclaimed", user_id=user.id, reward_id=reward_id)
    return data


# ---------------------------------------------------------------------------
# Credit reset (API key)
# ---------------------------------------------------------------------------


@router.post("/reset-credits", response_model=CreditResetResponse)
async def reset_user_credits(
    body: CreditResetRequest,
    authorization: str | None = Header(None),
    data_store: UserDataStore = Depends(get_user_data_store),
) -> CreditResetResponse:
    """Zero a user's credit balance. Authorized by the reset API key, not a session."""
    expected = get_settings().reset_api_key
    presented = (authorization or "").removeprefix("Bearer ").strip()
    if not expected or not secrets.compare_digest(presented, expected):
        msg = "Unauthorized access"
        raise UnauthorizedError(msg)

    data = await data_store.get(body.user_id)
    reset_credits(data)
    await data_store.save(body.user_id, data)
    logger.info("credits_reset", user_id=body.user_id)
    return CreditResetResponse(user_id=body.user_id, total_credits=data.total_credits)
