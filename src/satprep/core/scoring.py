"""Scoring for submitted attempts.

Every question carries equal weight: score is the share of correct answers
scaled to the test's max score. Pure functions, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from satprep.core.models import QuestionOutcome


@dataclass
class ScoreSummary:
    """Score and analytics for one attempt."""

    score: int
    percentage: int
    correct: int
    incorrect: int
    skipped: int
    total: int
    avg_time_per_question: int
    duration_minutes: int | None = None


def round_half_up(value: float) -> int:
    """Round to nearest int, halves away from zero."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def compute_score(
    outcomes: Iterable[QuestionOutcome],
    max_score: int,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
) -> ScoreSummary:
    """Compute score, percentage and analytics.

    Args:
        outcomes: Per-question outcomes
        max_score: Maximum score of the test (e.g. 1600)
        start_time: Attempt start, for duration
        end_time: Attempt end, for duration

    Returns:
        ScoreSummary. An empty outcome list scores 0 / 0%.
    """
    outcomes = list(outcomes)
    total = len(outcomes)

    correct = sum(1 for q in outcomes if q.is_correct)
    skipped = sum(1 for q in outcomes if not q.is_correct and q.is_skipped)
    incorrect = total - correct - skipped

    if total == 0 or max_score <= 0:
        score = 0
        percentage = 0
    else:
        points_per_question = max_score / total
        score = round_half_up(correct * points_per_question)
        score = min(max(score, 0), max_score)
        percentage = round_half_up(score / max_score * 100)
        percentage = min(max(percentage, 0), 100)

    if total > 0:
        total_time = sum(max(q.time_spent or 0, 0) for q in outcomes)
        avg_time = round_half_up(total_time / total)
    else:
        avg_time = 0

    duration = None
    if start_time is not None and end_time is not None:
        duration = max(0, round_half_up((end_time - start_time).total_seconds() / 60))

    return ScoreSummary(
        score=score,
        percentage=percentage,
        correct=correct,
        incorrect=incorrect,
        skipped=skipped,
        total=total,
        avg_time_per_question=avg_time,
        duration_minutes=duration,
    )


def is_passing(score: int, passing_score: int) -> bool:
    """Score meets the test's passing threshold."""
    return score >= passing_score
