"""Reward ledger: coins, completion streak and the daily streak bonus.

Runs once per completed attempt and mutates the user's accounting fields
in place. The caller persists the user in the same transaction as the
attempt's terminal write.

Streak semantics:
- login_streak counts consecutive calendar days with a completed test
- Same day: no change
- Next day: N -> N+1
- Gap > 1 day (or first completion): reset to 1

Streak bonus: at most once per calendar day, on the first coin-earning
completion of the day, scaled by the streak length.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import structlog

from satprep.core.models import UserAccount
from satprep.utils.dates import is_next_day, is_same_day

logger = structlog.get_logger(__name__)

# (minimum percentage, coins), checked top-down
COIN_TIERS: list[tuple[int, int]] = [
    (90, 5),
    (80, 4),
    (70, 3),
    (60, 2),
    (50, 1),
]

# (minimum streak, bonus), checked top-down
STREAK_BONUS_TIERS: list[tuple[int, int]] = [
    (25, 6),
    (20, 5),
    (15, 4),
    (10, 3),
    (5, 2),
    (1, 1),
]


@dataclass
class RewardOutcome:
    """Coins granted for one completed attempt."""

    coins_earned: int
    streak_bonus: int
    message: str = ""

    @property
    def total(self) -> int:
        return self.coins_earned + self.streak_bonus


def coins_for_percentage(percentage: float) -> int:
    """Coins for a completion percentage (lower bounds inclusive)."""
    for threshold, coins in COIN_TIERS:
        if percentage >= threshold:
            return coins
    return 0


def streak_bonus_for(streak: int) -> int:
    """Bonus coins for a streak length."""
    for threshold, bonus in STREAK_BONUS_TIERS:
        if streak >= threshold:
            return bonus
    return 0


def bonus_used_today(user: UserAccount, today: date) -> bool:
    """Whether today's streak bonus was already granted.

    The stored flag only counts while last_coin_earned_date is today; on a
    new day it reads as unused without any reset job.
    """
    return user.streak_bonus_used_today and is_same_day(user.last_coin_earned_date, today)


def update_completion_streak(user: UserAccount, today: date) -> None:
    """Advance the test-completion streak for a completion on `today`."""
    last = user.last_test_completion_date
    if is_same_day(last, today):
        return

    if is_next_day(last, today):
        user.login_streak += 1
    else:
        user.login_streak = 1
    user.last_test_completion_date = today


def award(user: UserAccount, percentage: float, today: date) -> RewardOutcome:
    """Grant coins and streak bonus for a completed attempt.

    Mutates user: streak, coins, totals, running accuracy and the
    daily-bonus fields.

    Args:
        user: Accounting record of the attempt owner
        percentage: Completion percentage (0-100)
        today: Calendar day of the completion

    Returns:
        RewardOutcome with coins, bonus and display message
    """
    coins_earned = coins_for_percentage(percentage)

    update_completion_streak(user, today)

    used_today = bonus_used_today(user, today)
    streak_bonus = 0
    message = ""
    if (
        coins_earned > 0
        and not is_same_day(user.last_coin_earned_date, today)
        and not used_today
    ):
        streak_bonus = streak_bonus_for(user.login_streak)
        if streak_bonus > 0:
            used_today = True
            message = f"(+{streak_bonus} bonus from {user.login_streak}-day streak!)"

    user.total_tests_taken += 1
    user.coins += coins_earned + streak_bonus
    if coins_earned > 0:
        user.last_coin_earned_date = today
        user.streak_bonus_used_today = used_today
    user.average_accuracy = (
        user.average_accuracy * (user.total_tests_taken - 1) + percentage
    ) / user.total_tests_taken

    logger.info(
        "rewards.awarded",
        user_id=user.user_id,
        percentage=percentage,
        coins_earned=coins_earned,
        streak_bonus=streak_bonus,
        streak=user.login_streak,
    )

    return RewardOutcome(
        coins_earned=coins_earned,
        streak_bonus=streak_bonus,
        message=message,
    )
