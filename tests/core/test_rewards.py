"""Tests for the reward ledger: coins, streak and daily bonus."""

from datetime import date

import pytest

from satprep.core.models import UserAccount
from satprep.core.rewards import (
    award,
    bonus_used_today,
    coins_for_percentage,
    streak_bonus_for,
    update_completion_streak,
)

TODAY = date(2025, 3, 10)
YESTERDAY = date(2025, 3, 9)


class TestCoinTiers:
    """Tests for coins_for_percentage."""

    @pytest.mark.parametrize(
        "percentage,coins",
        [(45, 0), (55, 1), (65, 2), (75, 3), (85, 4), (95, 5)],
    )
    def test_step_function(self, percentage, coins):
        assert coins_for_percentage(percentage) == coins

    @pytest.mark.parametrize(
        "percentage,coins",
        [(50, 1), (60, 2), (70, 3), (80, 4), (90, 5), (100, 5), (49, 0), (0, 0)],
    )
    def test_lower_bounds_inclusive(self, percentage, coins):
        assert coins_for_percentage(percentage) == coins


class TestStreakBonusTable:
    """Tests for streak_bonus_for."""

    @pytest.mark.parametrize(
        "streak,bonus",
        [(0, 0), (1, 1), (4, 1), (5, 2), (9, 2), (10, 3), (15, 4), (20, 5), (24, 5), (25, 6), (100, 6)],
    )
    def test_table(self, streak, bonus):
        assert streak_bonus_for(streak) == bonus


class TestCompletionStreak:
    """Tests for update_completion_streak."""

    def test_first_completion_starts_at_one(self):
        user = UserAccount(user_id="u1")
        update_completion_streak(user, TODAY)
        assert user.login_streak == 1
        assert user.last_test_completion_date == TODAY

    def test_next_day_increments(self):
        user = UserAccount(user_id="u1", login_streak=4, last_test_completion_date=YESTERDAY)
        update_completion_streak(user, TODAY)
        assert user.login_streak == 5

    def test_same_day_unchanged(self):
        user = UserAccount(user_id="u1", login_streak=4, last_test_completion_date=TODAY)
        update_completion_streak(user, TODAY)
        assert user.login_streak == 4

    def test_gap_resets_to_one(self):
        user = UserAccount(
            user_id="u1", login_streak=12, last_test_completion_date=date(2025, 3, 1)
        )
        update_completion_streak(user, TODAY)
        assert user.login_streak == 1
        assert user.last_test_completion_date == TODAY

    def test_month_boundary_is_consecutive(self):
        user = UserAccount(
            user_id="u1", login_streak=2, last_test_completion_date=date(2025, 2, 28)
        )
        update_completion_streak(user, date(2025, 3, 1))
        assert user.login_streak == 3


class TestAward:
    """Tests for award."""

    def test_applies_coins_and_totals(self):
        """Coins, totals and accuracy are updated."""
        user = UserAccount(user_id="u1")
        outcome = award(user, 100, TODAY)

        assert outcome.coins_earned == 5
        assert outcome.streak_bonus == 1  # first day of streak
        assert user.coins == 6
        assert user.total_tests_taken == 1
        assert user.average_accuracy == 100
        assert user.last_coin_earned_date == TODAY
        assert user.streak_bonus_used_today

    def test_running_average_accuracy(self):
        """Average accuracy is the mean of completion percentages."""
        user = UserAccount(user_id="u1", total_tests_taken=1, average_accuracy=80.0)
        award(user, 60, TODAY)
        assert user.total_tests_taken == 2
        assert user.average_accuracy == pytest.approx(70.0)

    def test_seven_day_streak_bonus(self):
        """A 7-day streak grants +2 with a message naming the streak."""
        user = UserAccount(
            user_id="u1",
            login_streak=6,
            last_test_completion_date=YESTERDAY,
            last_coin_earned_date=YESTERDAY,
        )
        outcome = award(user, 95, TODAY)

        assert user.login_streak == 7
        assert outcome.streak_bonus == 2
        assert "7-day" in outcome.message
        assert outcome.message == "(+2 bonus from 7-day streak!)"

    def test_bonus_once_per_day(self):
        """Second completion on the same day earns coins but no bonus."""
        user = UserAccount(
            user_id="u1",
            login_streak=7,
            last_test_completion_date=TODAY,
            last_coin_earned_date=YESTERDAY,
        )
        first = award(user, 85, TODAY)
        second = award(user, 85, TODAY)

        assert first.streak_bonus == 2
        assert second.coins_earned == 4
        assert second.streak_bonus == 0
        assert second.message == ""
        assert user.coins == 4 + 2 + 4

    def test_no_bonus_without_coins(self):
        """Scores below 50% earn neither coins nor bonus."""
        user = UserAccount(user_id="u1", login_streak=3, last_test_completion_date=YESTERDAY)
        outcome = award(user, 40, TODAY)

        assert outcome.coins_earned == 0
        assert outcome.streak_bonus == 0
        assert user.coins == 0
        assert user.total_tests_taken == 1
        assert user.login_streak == 4
        assert not user.streak_bonus_used_today

    def test_stale_flag_resets_on_new_day(self):
        """A flag left over from yesterday does not block today's bonus."""
        user = UserAccount(
            user_id="u1",
            login_streak=1,
            last_test_completion_date=YESTERDAY,
            last_coin_earned_date=YESTERDAY,
            streak_bonus_used_today=True,
        )
        assert not bonus_used_today(user, TODAY)

        outcome = award(user, 90, TODAY)
        assert outcome.streak_bonus == 1  # streak 2
        assert bonus_used_today(user, TODAY)

    def test_coins_never_decrease(self):
        """Coins and totals are non-decreasing across awards."""
        user = UserAccount(user_id="u1", coins=10)
        for pct in (0, 30, 55, 100):
            before = (user.coins, user.total_tests_taken)
            award(user, pct, TODAY)
            assert user.coins >= before[0]
            assert user.total_tests_taken == before[1] + 1

    def test_zero_coin_completion_keeps_bonus_available(self):
        """A sub-50% completion does not use up the day's bonus."""
        user = UserAccount(
            user_id="u1",
            login_streak=6,
            last_test_completion_date=YESTERDAY,
            last_coin_earned_date=YESTERDAY,
        )
        first = award(user, 40, TODAY)
        assert first.coins_earned == 0
        assert user.last_coin_earned_date == YESTERDAY

        second = award(user, 95, TODAY)
        assert second.coins_earned == 5
        assert second.streak_bonus == 2
        assert second.message == "(+2 bonus from 7-day streak!)"
        assert user.login_streak == 7
        assert user.coins == 7
        assert user.last_coin_earned_date == TODAY
        assert bonus_used_today(user, TODAY)
