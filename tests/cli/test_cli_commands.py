"""Tests for CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from satprep.cli.commands import app
from satprep.db import attempts_repository, users_repository

runner = CliRunner()


@pytest.fixture
def answers_file(tmp_path):
    """Answers JSON with 9/10 correct."""
    path = tmp_path / "answers.json"
    path.write_text(
        json.dumps(
            {
                "question_results": [
                    {"question_id": f"q{i}", "user_answer": "A", "is_correct": i < 9}
                    for i in range(10)
                ]
            }
        )
    )
    return path


class TestSeedCommands:
    """Tests for add-user / add-test."""

    def test_add_user(self, lifecycle):
        result = runner.invoke(app, ["add-user", "cli-user", "--tier", "student"])
        assert result.exit_code == 0, result.output
        assert users_repository.get_user("cli-user").account_type == "student"

    def test_add_user_duplicate(self, lifecycle):
        runner.invoke(app, ["add-user", "cli-user"])
        result = runner.invoke(app, ["add-user", "cli-user"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_add_test(self, lifecycle):
        result = runner.invoke(app, ["add-test", "T1", "--max-score", "800"])
        assert result.exit_code == 0, result.output

    def test_add_test_uses_config_default(self, lifecycle):
        from satprep.config.app_config import CONFIG_FILE, clear_config_cache
        from satprep.db import tests_repository

        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_FILE.write_text("scoring:\n  default_max_score: 400\n", encoding="utf-8")
        clear_config_cache()

        result = runner.invoke(app, ["add-test", "T2"])
        assert result.exit_code == 0, result.output
        assert "max 400" in result.output
        assert tests_repository.get_test("T2").max_score == 400


class TestAttemptCommands:
    """Tests for start / submit / status / wallet."""

    def test_full_flow(self, lifecycle, seed, answers_file):
        seed.user("u1", "free")
        seed.test("X")

        result = runner.invoke(app, ["start", "u1", "X"])
        assert result.exit_code == 0, result.output
        assert "Started attempt #1" in result.output

        attempt = attempts_repository.find_in_progress("u1", "X")
        result = runner.invoke(
            app, ["submit", attempt.attempt_id, "--user", "u1", "--answers", str(answers_file)]
        )
        assert result.exit_code == 0, result.output
        assert "90%" in result.output
        assert "+5 coins" in result.output

        result = runner.invoke(app, ["start", "u1", "X"])
        assert result.exit_code == 1
        assert "Upgrade" in result.output

        result = runner.invoke(app, ["wallet", "u1"])
        assert result.exit_code == 0
        assert "6" in result.output

    def test_start_resumes(self, lifecycle, seed):
        seed.user("u1", "free")
        seed.test("X")
        runner.invoke(app, ["start", "u1", "X"])
        result = runner.invoke(app, ["start", "u1", "X"])
        assert "Resumed" in result.output

    def test_submit_missing_answers_file(self, lifecycle, seed, tmp_path):
        result = runner.invoke(
            app, ["submit", "att-x", "--user", "u1", "--answers", str(tmp_path / "nope.json")]
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_submit_rejects_negative_time(self, lifecycle, seed, tmp_path):
        seed.user("u1", "free")
        seed.test("X")
        attempt = lifecycle.start("u1", "X").attempt
        path = tmp_path / "bad.json"
        path.write_text(
            json.dumps(
                {"question_results": [
                    {"question_id": "q1", "user_answer": "A", "is_correct": True,
                     "time_spent": -100}
                ]}
            )
        )

        result = runner.invoke(
            app, ["submit", attempt.attempt_id, "--user", "u1", "--answers", str(path)]
        )
        assert result.exit_code == 1
        assert "time_spent" in result.output
        assert attempts_repository.get_attempt(attempt.attempt_id).status == "in-progress"

    def test_status(self, lifecycle, seed):
        seed.user("a1", "admin")
        result = runner.invoke(app, ["status", "a1", "X"])
        assert result.exit_code == 0, result.output
        assert "unlimited" in result.output


class TestSetTier:
    """Tests for set-tier."""

    def test_set_tier(self, lifecycle, seed):
        seed.user("u1", "free")
        result = runner.invoke(app, ["set-tier", "u1", "Mentor"])
        assert result.exit_code == 0, result.output
        assert users_repository.get_user("u1").account_type == "mentor"

    def test_set_tier_unknown_user(self, lifecycle):
        result = runner.invoke(app, ["set-tier", "ghost", "student"])
        assert result.exit_code == 1
