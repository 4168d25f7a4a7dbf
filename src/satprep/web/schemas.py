"""Pydantic schemas for Web API.

Serialization models for attempts, attempt status, analytics and wallets.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from satprep.core.models import Attempt, QuestionOutcome


# =============================================================================
# ATTEMPT SCHEMAS
# =============================================================================


class AttemptStartRequest(BaseModel):
    """Request to start (or resume) an attempt."""

    test_id: str = Field(..., min_length=1)


class QuestionResultSchema(BaseModel):
    """One question outcome as submitted by the client."""

    question_id: str = Field(..., min_length=1)
    user_answer: str | None = None
    is_correct: bool = False
    time_spent: int | None = Field(default=None, ge=0)  # seconds
    topic: str | None = None

    def to_outcome(self) -> QuestionOutcome:
        return QuestionOutcome(
            question_id=self.question_id,
            user_answer=self.user_answer,
            is_correct=self.is_correct,
            time_spent=self.time_spent,
            topic=self.topic,
        )


class AttemptSubmitRequest(BaseModel):
    """Request to finish an attempt."""

    question_results: list[QuestionResultSchema] = Field(default_factory=list)
    end_time: datetime | None = None
    status: Literal["completed", "abandoned", "timeout"] = "completed"


class AnalyticsSchema(BaseModel):
    """Per-attempt analytics summary."""

    total_questions: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    skipped_questions: int = 0
    average_time_per_question: int = 0


class AttemptResponse(BaseModel):
    """Response for an attempt."""

    attempt_id: str
    user_id: str
    test_id: str
    attempt_number: int
    status: str
    start_time: str
    end_time: str | None = None
    duration_minutes: int | None = None
    score: int | None = None
    max_score: int
    percentage: int | None = None
    passed: bool = False
    question_results: list[dict[str, Any]] = Field(default_factory=list)
    analytics: AnalyticsSchema = Field(default_factory=AnalyticsSchema)
    coins_earned: int = 0
    streak_bonus: int = 0

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> AttemptResponse:
        return cls(**attempt.to_dict())


class AttemptStartResponse(BaseModel):
    """Response for start/resume."""

    attempt: AttemptResponse
    resumed: bool


class AttemptSubmitResponse(BaseModel):
    """Response for a submission."""

    attempt: AttemptResponse
    coins_earned: int = 0
    streak_bonus: int = 0
    streak_bonus_message: str = ""


class AttemptStatusResponse(BaseModel):
    """Attempt counters for a (user, test) pair."""

    test_id: str
    completed_attempts: int
    incomplete_attempts: int
    max_attempts: int | None  # null = unlimited
    attempts_remaining: int | None
    can_attempt: bool
    has_incomplete_attempt: bool


class PaginationSchema(BaseModel):
    """Pagination info for list responses."""

    current: int
    pages: int
    total: int
    limit: int


class AttemptListResponse(BaseModel):
    """Response for a page of attempts."""

    attempts: list[AttemptResponse]
    pagination: PaginationSchema


class TopicAccuracySchema(BaseModel):
    """Accuracy for one topic."""

    topic: str
    accuracy: int


class AnalyticsOverviewResponse(BaseModel):
    """Performance overview across completed attempts."""

    total_tests: int = 0
    average_score: int = 0
    best_score: int = 0
    total_time: int = 0
    strength_areas: list[TopicAccuracySchema] = Field(default_factory=list)
    weak_areas: list[TopicAccuracySchema] = Field(default_factory=list)
    recent_progress: list[dict[str, Any]] = Field(default_factory=list)


# =============================================================================
# USER SCHEMAS
# =============================================================================


class WalletResponse(BaseModel):
    """Accounting view of a user."""

    user_id: str
    account_type: str
    coins: int
    total_tests_taken: int
    average_accuracy: float
    login_streak: int
    last_test_completion_date: str | None = None
    last_coin_earned_date: str | None = None
    streak_bonus_used_today: bool = False


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str
