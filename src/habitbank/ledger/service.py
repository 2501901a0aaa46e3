"""
Habit and reward ledger.

Pure functions over a ``UserData`` aggregate: callers load the aggregate,
apply one of these, and write it back. Credits never go below zero.
"""

from __future__ import annotations

from datetime import date

import structlog

from habitbank.errors import InsufficientCreditsError, NotFoundError, ValidationError
from habitbank.models import HABITS, CreditAction, HabitRecord, HabitType, Reward, UserData

logger = structlog.get_logger()


def claims_on(data: UserData, habit: HabitType, day: date) -> int:
    """Number of earn records for ``habit`` on ``day``."""
    return sum(
        1
        for record in data.habits
        if record.habit == habit and record.date == day and record.action == CreditAction.EARN
    )


def claim_habit(
    data: UserData,
    habit: HabitType,
    day: date,
    notes: str | None = None,
    today: date | None = None,
) -> HabitRecord | None:
    """
    Append an earn record and add its credits.

    Returns the new record, or None when the habit's per-day limit is
    already reached (no change is made).

    Raises:
        ValidationError: If ``day`` is in the future.
    """
    if day > (today or date.today()):
        msg = "Cannot track habits for future dates"
        raise ValidationError(msg)

    definition = HABITS[habit]
    if claims_on(data, habit, day) >= definition.max_per_day:
        logger.info(
            "habit_claim_limit_reached",
            habit=habit.value,
            date=day.isoformat(),
            limit=definition.max_per_day,
        )
        return None

    record = HabitRecord(
        date=day,
        habit=habit,
        action=CreditAction.EARN,
        credits=definition.credits,
        notes=notes,
    )
    data.habits.append(record)
    data.total_credits += record.credits
    return record


def unclaim_habit(data: UserData, habit: HabitType, day: date) -> HabitRecord | None:
    """
    Remove the most recent earn record for ``habit`` on ``day``.

    Its credits are subtracted, clamped at zero. Returns the removed record,
    or None (with a warning) if there was nothing to unclaim.
    """
    for index in range(len(data.habits) - 1, -1, -1):
        record = data.habits[index]
        if record.habit == habit and record.date == day and record.action == CreditAction.EARN:
            del data.habits[index]
            data.total_credits = max(0, data.total_credits - record.credits)
            return record

    logger.warning("habit_unclaim_without_claim", habit=habit.value, date=day.isoformat())
    return None


def _find_reward(data: UserData, reward_id: str) -> Reward:
    for reward in data.rewards:
        if reward.id == reward_id:
            return reward
    msg = f"Reward not found: {reward_id}"
    raise NotFoundError(msg)


def claim_reward(data: UserData, reward_id: str) -> Reward:
    """
    Spend credits on one of the user's rewards.

    Already-claimed rewards are left alone.

    Raises:
        NotFoundError: If the user has no such reward.
        InsufficientCreditsError: If the balance is below the reward's cost.
    """
    reward = _find_reward(data, reward_id)
    if reward.claimed:
        return reward
    if data.total_credits < reward.credits:
        msg = f"Not enough credits: have {data.total_credits}, need {reward.credits}"
        raise InsufficientCreditsError(msg)
    reward.claimed = True
    data.total_credits -= reward.credits
    return reward


def unclaim_reward(data: UserData, reward_id: str) -> Reward:
    """Mark a claimed reward unclaimed and refund its cost."""
    reward = _find_reward(data, reward_id)
    if not reward.claimed:
        return reward
    reward.claimed = False
    data.total_credits += reward.credits
    return reward


def assign_reward(data: UserData, reward: Reward) -> Reward:
    """Give the user an unclaimed copy of a catalog reward."""
    if any(r.id == reward.id for r in data.rewards):
        msg = f"User already has reward {reward.id}"
        raise ValidationError(msg)
    copy = reward.model_copy(update={"claimed": False})
    data.rewards.append(copy)
    return copy


def remove_reward(data: UserData, reward_id: str) -> Reward:
    """Drop a reward from the user's list without touching credits."""
    reward = _find_reward(data, reward_id)
    data.rewards.remove(reward)
    return reward


def reset_credits(data: UserData) -> None:
    data.total_credits = 0
