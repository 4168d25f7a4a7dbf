"""Tests for the scoring engine."""

from datetime import datetime, timedelta, timezone

import pytest

from satprep.core.models import QuestionOutcome
from satprep.core.scoring import compute_score, is_passing, round_half_up


class TestComputeScore:
    """Tests for compute_score."""

    def test_all_correct_scores_max(self, outcomes):
        """10/10 correct gives full score and 100%."""
        summary = compute_score(outcomes(10, 10), 1600)
        assert summary.score == 1600
        assert summary.percentage == 100
        assert summary.correct == 10
        assert summary.incorrect == 0
        assert summary.skipped == 0

    def test_partial_score_rounds(self, outcomes):
        """Score is correct x (max / total), rounded."""
        summary = compute_score(outcomes(2, 3), 1600)
        # 2 * 533.33 = 1066.67
        assert summary.score == 1067
        assert summary.percentage == 67

    def test_empty_outcomes_score_zero(self):
        """No questions gives 0 / 0% instead of NaN."""
        summary = compute_score([], 1600)
        assert summary.score == 0
        assert summary.percentage == 0
        assert summary.total == 0
        assert summary.avg_time_per_question == 0

    def test_skipped_counts_blank_answers(self):
        """Absent or blank answers count as skipped, not incorrect."""
        results = [
            QuestionOutcome("q1", "A", True, 30),
            QuestionOutcome("q2", "C", False, 30),
            QuestionOutcome("q3", None, False, 0),
            QuestionOutcome("q4", "  ", False, 0),
        ]
        summary = compute_score(results, 1600)
        assert summary.correct == 1
        assert summary.skipped == 2
        assert summary.incorrect == 1

    def test_average_time_per_question(self):
        """Average time uses all questions, missing time counts as 0."""
        results = [
            QuestionOutcome("q1", "A", True, 40),
            QuestionOutcome("q2", "A", True, 50),
            QuestionOutcome("q3", "A", True, None),
        ]
        summary = compute_score(results, 1600)
        assert summary.avg_time_per_question == 30

    def test_negative_time_counts_as_zero(self):
        results = [
            QuestionOutcome("q1", "A", True, -100),
            QuestionOutcome("q2", "A", True, 60),
        ]
        assert compute_score(results, 1600).avg_time_per_question == 30

    def test_from_dict_rejects_negative_time(self):
        with pytest.raises(ValueError):
            QuestionOutcome.from_dict({"question_id": "q1", "time_spent": -5})

    def test_duration_in_minutes(self, outcomes):
        """Duration is rounded minutes between start and end."""
        start = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
        end = start + timedelta(minutes=64, seconds=40)
        summary = compute_score(outcomes(1, 1), 1600, start_time=start, end_time=end)
        assert summary.duration_minutes == 65

    def test_duration_omitted_without_end(self, outcomes):
        """No end time means no duration."""
        start = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
        summary = compute_score(outcomes(1, 1), 1600, start_time=start)
        assert summary.duration_minutes is None

    def test_score_within_bounds(self, outcomes):
        """Score and percentage stay within their ranges."""
        for correct in range(0, 8):
            summary = compute_score(outcomes(correct, 7), 800)
            assert 0 <= summary.score <= 800
            assert 0 <= summary.percentage <= 100


class TestHelpers:
    """Tests for rounding and passing helpers."""

    def test_round_half_up(self):
        """Halves round up like Math.round."""
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2

    def test_is_passing(self):
        """Passing is inclusive of the threshold."""
        assert is_passing(1000, 1000)
        assert not is_passing(999, 1000)
