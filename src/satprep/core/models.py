"""Domain records for the attempt core.

Attempt, user accounting subset and test reference, plus the per-question
outcome submitted by clients. Persistence lives in satprep.db; these are
plain dataclasses so the scoring and reward logic stays free of I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

AttemptStatus = Literal["in-progress", "completed", "abandoned", "timeout"]

IN_PROGRESS = "in-progress"
COMPLETED = "completed"
ABANDONED = "abandoned"
TIMEOUT = "timeout"

TERMINAL_STATUSES = frozenset({COMPLETED, ABANDONED, TIMEOUT})
ALL_STATUSES = TERMINAL_STATUSES | {IN_PROGRESS}


@dataclass
class QuestionOutcome:
    """Result of a single question within an attempt."""

    question_id: str
    user_answer: str | None = None
    is_correct: bool = False
    time_spent: int | None = None  # seconds
    topic: str | None = None

    @property
    def is_skipped(self) -> bool:
        """No answer given."""
        return self.user_answer is None or not str(self.user_answer).strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "question_id": self.question_id,
            "user_answer": self.user_answer,
            "is_correct": self.is_correct,
        }
        if self.time_spent is not None:
            result["time_spent"] = self.time_spent
        if self.topic is not None:
            result["topic"] = self.topic
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionOutcome:
        """Create from dictionary.

        Raises:
            ValueError: If time_spent is negative
        """
        time_spent = data.get("time_spent")
        if time_spent is not None and time_spent < 0:
            raise ValueError(f"time_spent must be >= 0, got {time_spent}")
        return cls(
            question_id=str(data["question_id"]),
            user_answer=data.get("user_answer"),
            is_correct=bool(data.get("is_correct", False)),
            time_spent=time_spent,
            topic=data.get("topic"),
        )


@dataclass
class Attempt:
    """One user's run through one test."""

    attempt_id: str
    user_id: str
    test_id: str
    attempt_number: int
    start_time: datetime
    status: str = IN_PROGRESS
    end_time: datetime | None = None
    duration_minutes: int | None = None
    score: int | None = None
    max_score: int = 1600
    percentage: int | None = None
    passed: bool = False
    question_results: list[QuestionOutcome] = field(default_factory=list)
    correct_answers: int = 0
    incorrect_answers: int = 0
    skipped_questions: int = 0
    total_questions: int = 0
    average_time_per_question: int = 0
    coins_earned: int = 0
    streak_bonus: int = 0

    @property
    def is_terminal(self) -> bool:
        """Attempt reached completed, abandoned or timeout."""
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API/CLI output."""
        return {
            "attempt_id": self.attempt_id,
            "user_id": self.user_id,
            "test_id": self.test_id,
            "attempt_number": self.attempt_number,
            "status": self.status,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_minutes": self.duration_minutes,
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "passed": self.passed,
            "question_results": [q.to_dict() for q in self.question_results],
            "analytics": {
                "total_questions": self.total_questions,
                "correct_answers": self.correct_answers,
                "incorrect_answers": self.incorrect_answers,
                "skipped_questions": self.skipped_questions,
                "average_time_per_question": self.average_time_per_question,
            },
            "coins_earned": self.coins_earned,
            "streak_bonus": self.streak_bonus,
        }


@dataclass
class UserAccount:
    """Accounting subset of a platform user."""

    user_id: str
    account_type: str = "free"
    coins: int = 0
    total_tests_taken: int = 0
    average_accuracy: float = 0.0
    # Consecutive days with at least one completed test
    login_streak: int = 0
    last_test_completion_date: date | None = None
    last_coin_earned_date: date | None = None
    streak_bonus_used_today: bool = False


@dataclass
class TestRef:
    """Read-only test reference used for scoring context."""

    __test__ = False  # keep pytest from collecting this class

    test_id: str
    title: str = ""
    max_score: int = 1600
    passing_score: int = 1000
