"""Shared fixtures: isolated database, frozen clock and seeded records."""

from datetime import datetime, timezone

import pytest

from satprep.config.app_config import clear_config_cache
from satprep.core.lifecycle import AttemptLifecycle, set_lifecycle
from satprep.core.models import QuestionOutcome
from satprep.db import tests_repository, users_repository
from satprep.db.database import init_db, reset_db_path
from satprep.utils.dates import FixedClock


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database in a temp directory."""
    monkeypatch.chdir(tmp_path)
    db_path = tmp_path / "db" / "test.db"
    monkeypatch.setenv("SATPREP_DB_PATH", str(db_path))
    clear_config_cache()
    init_db(db_path)
    yield db_path
    reset_db_path()
    clear_config_cache()


@pytest.fixture
def clock():
    """Clock frozen at 2025-03-10 09:00 UTC."""
    return FixedClock(datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def lifecycle(db, clock):
    """Lifecycle bound to the test database and frozen clock."""
    lc = AttemptLifecycle(clock=clock)
    set_lifecycle(lc)
    yield lc
    set_lifecycle(None)


@pytest.fixture
def seed(db):
    """Insert users and tests into the database."""

    class Seeder:
        def user(self, user_id="u1", tier="free", **fields):
            user = users_repository.insert_user(user_id, tier)
            if fields:
                for key, value in fields.items():
                    setattr(user, key, value)
                users_repository.save_user_accounting(user)
            return user

        def test(self, test_id="t1", max_score=1600, passing_score=1000):
            return tests_repository.insert_test(
                test_id, title=f"Test {test_id}", max_score=max_score,
                passing_score=passing_score,
            )

    return Seeder()


def make_outcomes(correct: int, total: int, time_spent: int = 60) -> list[QuestionOutcome]:
    """Build outcomes with `correct` right answers out of `total`."""
    return [
        QuestionOutcome(
            question_id=f"q{i + 1}",
            user_answer="A" if i < correct else "B",
            is_correct=i < correct,
            time_spent=time_spent,
        )
        for i in range(total)
    ]


@pytest.fixture
def outcomes():
    """Factory for question outcomes."""
    return make_outcomes
