"""Repository functions for the tests table (read-mostly)."""

from __future__ import annotations

import sqlite3

import structlog

from satprep.config.app_config import load_app_config
from satprep.core.models import TestRef
from satprep.db.database import use_db

logger = structlog.get_logger(__name__)


def insert_test(
    test_id: str,
    title: str = "",
    max_score: int | None = None,
    passing_score: int | None = None,
    conn: sqlite3.Connection | None = None,
) -> TestRef:
    """Register a test reference.

    Scores left as None take the configured scoring defaults.

    Raises:
        sqlite3.IntegrityError: If test_id already exists
    """
    scoring = load_app_config().scoring
    if max_score is None:
        max_score = scoring.default_max_score
    if passing_score is None:
        passing_score = scoring.default_passing_score
    if max_score <= 0:
        raise ValueError("max_score must be positive")

    with use_db(conn) as db:
        db.execute(
            """
            INSERT INTO tests (test_id, title, max_score, passing_score)
            VALUES (?, ?, ?, ?)
            """,
            (test_id, title, max_score, passing_score),
        )

    logger.debug("tests.inserted", test_id=test_id, max_score=max_score)
    return TestRef(
        test_id=test_id, title=title, max_score=max_score, passing_score=passing_score
    )


def get_test(test_id: str, conn: sqlite3.Connection | None = None) -> TestRef | None:
    """Get test reference by ID."""
    with use_db(conn) as db:
        row = db.execute("SELECT * FROM tests WHERE test_id = ?", (test_id,)).fetchone()

    if row is None:
        return None

    return TestRef(
        test_id=row["test_id"],
        title=row["title"],
        max_score=row["max_score"],
        passing_score=row["passing_score"],
    )
