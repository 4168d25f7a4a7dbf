"""Performance overview across a user's completed attempts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from satprep.core.models import COMPLETED, Attempt
from satprep.core.scoring import round_half_up
from satprep.db import attempts_repository

# Topics need at least this many answered questions to be ranked
MIN_TOPIC_QUESTIONS = 5
TOP_AREAS = 3
RECENT_LIMIT = 5


@dataclass
class PerformanceOverview:
    """Aggregate stats over completed attempts."""

    total_tests: int = 0
    average_score: int = 0
    best_score: int = 0
    total_time: int = 0  # minutes
    strength_areas: list[dict[str, Any]] = field(default_factory=list)
    weak_areas: list[dict[str, Any]] = field(default_factory=list)
    recent_progress: list[dict[str, Any]] = field(default_factory=list)


def _topic_accuracy(attempts: list[Attempt]) -> list[dict[str, Any]]:
    stats: dict[str, list[int]] = {}
    for attempt in attempts:
        for q in attempt.question_results:
            if not q.topic:
                continue
            correct_total = stats.setdefault(q.topic, [0, 0])
            correct_total[1] += 1
            if q.is_correct:
                correct_total[0] += 1

    return [
        {"topic": topic, "accuracy": round_half_up(correct / total * 100)}
        for topic, (correct, total) in stats.items()
        if total >= MIN_TOPIC_QUESTIONS
    ]


def build_overview(attempts: list[Attempt]) -> PerformanceOverview:
    """Summarize completed attempts."""
    completed = [a for a in attempts if a.status == COMPLETED]
    if not completed:
        return PerformanceOverview()

    scores = [a.score or 0 for a in completed]
    topics = _topic_accuracy(completed)
    recent = sorted(
        completed,
        key=lambda a: a.end_time or datetime.min.replace(tzinfo=a.start_time.tzinfo),
        reverse=True,
    )[:RECENT_LIMIT]

    return PerformanceOverview(
        total_tests=len(completed),
        average_score=round_half_up(sum(scores) / len(completed)),
        best_score=max(scores),
        total_time=sum(a.duration_minutes or 0 for a in completed),
        strength_areas=sorted(topics, key=lambda t: t["accuracy"], reverse=True)[:TOP_AREAS],
        weak_areas=sorted(topics, key=lambda t: t["accuracy"])[:TOP_AREAS],
        recent_progress=[
            {
                "attempt_id": a.attempt_id,
                "test_id": a.test_id,
                "score": a.score,
                "percentage": a.percentage,
                "date": a.end_time.isoformat() if a.end_time else None,
            }
            for a in recent
        ],
    )


def get_overview(user_id: str) -> PerformanceOverview:
    """Load a user's completed attempts and summarize them."""
    attempts, _ = attempts_repository.list_attempts(user_id, status=COMPLETED, limit=-1)
    return build_overview(attempts)
