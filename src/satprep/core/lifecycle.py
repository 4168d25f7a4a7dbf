"""Attempt lifecycle (start / resume / submit).

State machine:
    in-progress -> completed | abandoned | timeout   (all terminal)

Responsibilities:
- Resume an existing in-progress attempt instead of creating a duplicate
- Enforce the tier quota before creating a new attempt
- Score every submission, reward only completed ones
- Keep the terminal write and the reward in one transaction

Concurrency:
- Each start/submit runs inside a BEGIN IMMEDIATE transaction
- The terminal write is conditional on status = 'in-progress'
- start/submit for the same user are serialized by a per-user lock
"""

from __future__ import annotations

import sqlite3
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generator, Iterable

import structlog

from satprep.config.app_config import get_quota_table, load_app_config
from satprep.core import rewards
from satprep.core.errors import AccessDenied, AlreadyCompleted, NotFound, QuotaExceeded
from satprep.core.models import (
    COMPLETED,
    IN_PROGRESS,
    TERMINAL_STATUSES,
    Attempt,
    QuestionOutcome,
)
from satprep.core.quota import AttemptQuotaPolicy
from satprep.core.scoring import compute_score, is_passing
from satprep.db import attempts_repository, tests_repository, users_repository
from satprep.db.database import get_db, transaction
from satprep.utils.dates import Clock, SystemClock

logger = structlog.get_logger(__name__)


@dataclass
class StartResult:
    """Result of starting (or resuming) an attempt."""

    attempt: Attempt
    resumed: bool


@dataclass
class SubmitResult:
    """Result of submitting an attempt."""

    attempt: Attempt
    coins_earned: int = 0
    streak_bonus: int = 0
    streak_bonus_message: str = ""


@dataclass
class AttemptStatus:
    """Attempt counters for a (user, test) pair."""

    completed_attempts: int
    incomplete_attempts: int
    max_attempts: int | None
    attempts_remaining: int | None
    can_attempt: bool
    has_incomplete_attempt: bool


class AttemptLifecycle:
    """Orchestrates quota, scoring and rewards around attempt state."""

    def __init__(
        self,
        clock: Clock | None = None,
        policy: AttemptQuotaPolicy | None = None,
    ):
        config = load_app_config()
        self.clock = clock or SystemClock(config.timezone)
        self.policy = policy or AttemptQuotaPolicy(get_quota_table())
        self.default_passing_score = config.scoring.default_passing_score
        # entries disappear once no thread holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    @contextmanager
    def _user_lock(self, user_id: str) -> Generator[None, None, None]:
        """Serialize quota checks and reward issuance per user."""
        with self._locks_guard:
            lock = self._locks.setdefault(user_id, threading.Lock())
        with lock:
            yield

    def start(self, user_id: str, test_id: str) -> StartResult:
        """Start a new attempt or resume the in-progress one.

        Args:
            user_id: Requesting user
            test_id: Test to attempt

        Returns:
            StartResult; resumed=True when an existing attempt is returned

        Raises:
            NotFound: User or test missing
            QuotaExceeded: Tier limit reached for this test
        """
        with self._user_lock(user_id), transaction() as conn:
            user = users_repository.get_user(user_id, conn=conn)
            if user is None:
                raise NotFound("user", user_id)

            test = tests_repository.get_test(test_id, conn=conn)
            if test is None:
                raise NotFound("test", test_id)

            existing = self.policy.find_resumable(user_id, test_id, conn=conn)
            if existing is not None:
                logger.info(
                    "attempt.resumed",
                    attempt_id=existing.attempt_id,
                    user_id=user_id,
                    test_id=test_id,
                )
                return StartResult(attempt=existing, resumed=True)

            completed = attempts_repository.count_attempts(
                user_id, test_id, COMPLETED, conn=conn
            )
            decision = self.policy.can_start(user.account_type, completed)
            if not decision.allowed:
                raise QuotaExceeded(
                    tier=user.account_type,
                    max_attempts=decision.max_attempts,
                    current_attempts=completed,
                    upgrade_eligible=decision.upgrade_eligible,
                    reason=decision.reason,
                )

            attempt = attempts_repository.insert_attempt(
                user_id=user_id,
                test_id=test_id,
                attempt_number=completed + 1,
                start_time=self.clock.now(),
                max_score=test.max_score,
                conn=conn,
            )

        logger.info(
            "attempt.started",
            attempt_id=attempt.attempt_id,
            user_id=user_id,
            test_id=test_id,
            attempt_number=attempt.attempt_number,
        )
        return StartResult(attempt=attempt, resumed=False)

    def submit(
        self,
        attempt_id: str,
        requester_id: str,
        outcomes: Iterable[QuestionOutcome],
        end_time: datetime | None = None,
        status: str = COMPLETED,
    ) -> SubmitResult:
        """Finish an attempt, score it and reward completions.

        Args:
            attempt_id: Attempt to finish
            requester_id: Authenticated user submitting
            outcomes: Per-question outcomes
            end_time: Client-reported end time (default: now)
            status: Terminal status (completed, abandoned or timeout)

        Returns:
            SubmitResult with the stored attempt and rewards

        Raises:
            ValueError: status is not terminal
            NotFound: Attempt missing
            AccessDenied: Requester does not own the attempt
            AlreadyCompleted: Attempt already terminal
        """
        if status not in TERMINAL_STATUSES:
            raise ValueError(
                f"Invalid status '{status}'. Must be one of: {sorted(TERMINAL_STATUSES)}"
            )
        outcomes = list(outcomes)

        with self._user_lock(requester_id), transaction() as conn:
            attempt = attempts_repository.get_attempt(attempt_id, conn=conn)
            if attempt is None:
                raise NotFound("attempt", attempt_id)
            if attempt.user_id != requester_id:
                raise AccessDenied(attempt_id)
            if attempt.is_terminal:
                raise AlreadyCompleted(attempt_id, attempt.status)

            attempt.end_time = _as_aware(end_time) if end_time else self.clock.now()
            attempt.status = status
            attempt.question_results = outcomes
            self._apply_score(attempt, conn)

            result = SubmitResult(attempt=attempt)
            user = None
            if status == COMPLETED:
                user = users_repository.get_user(attempt.user_id, conn=conn)
                if user is None:
                    raise NotFound("user", attempt.user_id)
                reward = rewards.award(user, attempt.percentage, self.clock.today())
                attempt.coins_earned = reward.coins_earned
                attempt.streak_bonus = reward.streak_bonus
                result.coins_earned = reward.coins_earned
                result.streak_bonus = reward.streak_bonus
                result.streak_bonus_message = reward.message

            if not attempts_repository.finish_attempt(attempt, conn=conn):
                # Lost the race to another writer; roll everything back
                current = attempts_repository.get_attempt(attempt_id, conn=conn)
                raise AlreadyCompleted(
                    attempt_id, current.status if current else attempt.status
                )
            if user is not None:
                users_repository.save_user_accounting(user, conn=conn)

        logger.info(
            "attempt.submitted",
            attempt_id=attempt_id,
            status=status,
            score=attempt.score,
            percentage=attempt.percentage,
            coins_earned=result.coins_earned,
            streak_bonus=result.streak_bonus,
        )
        return result

    def _apply_score(self, attempt: Attempt, conn: sqlite3.Connection) -> None:
        """Score the attempt and copy analytics onto it."""
        summary = compute_score(
            attempt.question_results,
            attempt.max_score,
            start_time=attempt.start_time,
            end_time=attempt.end_time,
        )
        test = tests_repository.get_test(attempt.test_id, conn=conn)
        passing_score = test.passing_score if test else self.default_passing_score

        attempt.score = summary.score
        attempt.percentage = summary.percentage
        attempt.passed = is_passing(summary.score, passing_score)
        attempt.duration_minutes = summary.duration_minutes
        attempt.total_questions = summary.total
        attempt.correct_answers = summary.correct
        attempt.incorrect_answers = summary.incorrect
        attempt.skipped_questions = summary.skipped
        attempt.average_time_per_question = summary.avg_time_per_question

    def get_status(self, user_id: str, test_id: str) -> AttemptStatus:
        """Attempt counters and remaining quota for (user, test).

        Raises:
            NotFound: User missing
        """
        with get_db() as conn:
            user = users_repository.get_user(user_id, conn=conn)
            if user is None:
                raise NotFound("user", user_id)
            completed = attempts_repository.count_attempts(
                user_id, test_id, COMPLETED, conn=conn
            )
            incomplete = attempts_repository.count_attempts(
                user_id, test_id, IN_PROGRESS, conn=conn
            )

        decision = self.policy.can_start(user.account_type, completed)
        has_incomplete = incomplete > 0
        return AttemptStatus(
            completed_attempts=completed,
            incomplete_attempts=incomplete,
            max_attempts=decision.max_attempts,
            attempts_remaining=self.policy.attempts_remaining(user.account_type, completed),
            can_attempt=decision.allowed or has_incomplete,
            has_incomplete_attempt=has_incomplete,
        )

    def get_attempt(self, attempt_id: str, requester_id: str) -> Attempt:
        """Load an attempt owned by the requester.

        Raises:
            NotFound: Attempt missing
            AccessDenied: Requester does not own the attempt
        """
        attempt = attempts_repository.get_attempt(attempt_id)
        if attempt is None:
            raise NotFound("attempt", attempt_id)
        if attempt.user_id != requester_id:
            raise AccessDenied(attempt_id)
        return attempt


def _as_aware(value: datetime) -> datetime:
    """Treat naive client timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Global lifecycle instance
_lifecycle: AttemptLifecycle | None = None


def get_lifecycle() -> AttemptLifecycle:
    """Get the global attempt lifecycle instance."""
    global _lifecycle
    if _lifecycle is None:
        _lifecycle = AttemptLifecycle()
    return _lifecycle


def set_lifecycle(lifecycle: AttemptLifecycle | None) -> None:
    """Replace the global lifecycle (for testing)."""
    global _lifecycle
    _lifecycle = lifecycle
