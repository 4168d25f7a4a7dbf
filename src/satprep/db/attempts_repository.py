"""Repository functions for the attempts table.

Question outcomes are stored as a JSON array. The terminal write is a
conditional UPDATE guarded on status = 'in-progress', so a second
submission of the same attempt changes nothing.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime

import structlog

from satprep.core.models import IN_PROGRESS, Attempt, QuestionOutcome
from satprep.db.database import use_db
from satprep.utils.dates import format_datetime, parse_datetime

logger = structlog.get_logger(__name__)


def generate_attempt_id() -> str:
    """Generate a new attempt identifier."""
    return f"att-{uuid.uuid4().hex[:12]}"


def insert_attempt(
    user_id: str,
    test_id: str,
    attempt_number: int,
    start_time: datetime,
    max_score: int,
    conn: sqlite3.Connection | None = None,
) -> Attempt:
    """Create an in-progress attempt.

    Raises:
        sqlite3.IntegrityError: If an in-progress attempt already exists
            for (user_id, test_id)
    """
    attempt = Attempt(
        attempt_id=generate_attempt_id(),
        user_id=user_id,
        test_id=test_id,
        attempt_number=attempt_number,
        start_time=start_time,
        status=IN_PROGRESS,
        max_score=max_score,
    )

    with use_db(conn) as db:
        db.execute(
            """
            INSERT INTO attempts (
                attempt_id, user_id, test_id, attempt_number,
                status, start_time, max_score
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                attempt.attempt_id,
                user_id,
                test_id,
                attempt_number,
                IN_PROGRESS,
                format_datetime(start_time),
                max_score,
            ),
        )

    logger.debug("attempts.inserted", attempt_id=attempt.attempt_id)
    return attempt


def get_attempt(
    attempt_id: str, conn: sqlite3.Connection | None = None
) -> Attempt | None:
    """Get attempt by ID."""
    with use_db(conn) as db:
        row = db.execute(
            "SELECT * FROM attempts WHERE attempt_id = ?", (attempt_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_attempt(row)


def find_in_progress(
    user_id: str, test_id: str, conn: sqlite3.Connection | None = None
) -> Attempt | None:
    """Get the in-progress attempt for (user, test), if any."""
    with use_db(conn) as db:
        row = db.execute(
            """
            SELECT * FROM attempts
            WHERE user_id = ? AND test_id = ? AND status = ?
            """,
            (user_id, test_id, IN_PROGRESS),
        ).fetchone()

    if row is None:
        return None

    return _row_to_attempt(row)


def count_attempts(
    user_id: str,
    test_id: str,
    status: str,
    conn: sqlite3.Connection | None = None,
) -> int:
    """Count attempts for (user, test) with the given status."""
    with use_db(conn) as db:
        row = db.execute(
            """
            SELECT COUNT(*) AS n FROM attempts
            WHERE user_id = ? AND test_id = ? AND status = ?
            """,
            (user_id, test_id, status),
        ).fetchone()

    return int(row["n"])


def finish_attempt(
    attempt: Attempt, conn: sqlite3.Connection | None = None
) -> bool:
    """Write the terminal state of an attempt.

    Only applies while the stored row is still in progress.

    Returns:
        True if the row was updated, False if it was already terminal
    """
    with use_db(conn) as db:
        cursor = db.execute(
            """
            UPDATE attempts SET
                status = ?,
                end_time = ?,
                duration_minutes = ?,
                score = ?,
                percentage = ?,
                passed = ?,
                question_results = ?,
                total_questions = ?,
                correct_answers = ?,
                incorrect_answers = ?,
                skipped_questions = ?,
                average_time_per_question = ?,
                coins_earned = ?,
                streak_bonus = ?
            WHERE attempt_id = ? AND status = ?
            """,
            (
                attempt.status,
                format_datetime(attempt.end_time),
                attempt.duration_minutes,
                attempt.score,
                attempt.percentage,
                int(attempt.passed),
                json.dumps([q.to_dict() for q in attempt.question_results]),
                attempt.total_questions,
                attempt.correct_answers,
                attempt.incorrect_answers,
                attempt.skipped_questions,
                attempt.average_time_per_question,
                attempt.coins_earned,
                attempt.streak_bonus,
                attempt.attempt_id,
                IN_PROGRESS,
            ),
        )
        updated = cursor.rowcount == 1

    logger.debug(
        "attempts.finish_write",
        attempt_id=attempt.attempt_id,
        status=attempt.status,
        applied=updated,
    )
    return updated


def list_attempts(
    user_id: str,
    status: str | None = None,
    test_id: str | None = None,
    limit: int = 10,
    offset: int = 0,
    conn: sqlite3.Connection | None = None,
) -> tuple[list[Attempt], int]:
    """List a user's attempts, newest first.

    Returns:
        (page of attempts, total matching count)
    """
    where = ["user_id = ?"]
    params: list[object] = [user_id]
    if status:
        where.append("status = ?")
        params.append(status)
    if test_id:
        where.append("test_id = ?")
        params.append(test_id)
    clause = " AND ".join(where)

    with use_db(conn) as db:
        total = db.execute(
            f"SELECT COUNT(*) AS n FROM attempts WHERE {clause}", params
        ).fetchone()["n"]
        rows = db.execute(
            f"""
            SELECT * FROM attempts WHERE {clause}
            ORDER BY start_time DESC, rowid DESC
            LIMIT ? OFFSET ?
            """,
            [*params, limit, offset],
        ).fetchall()

    return [_row_to_attempt(r) for r in rows], int(total)


def _row_to_attempt(row: sqlite3.Row) -> Attempt:
    """Convert database row to Attempt."""
    return Attempt(
        attempt_id=row["attempt_id"],
        user_id=row["user_id"],
        test_id=row["test_id"],
        attempt_number=row["attempt_number"],
        status=row["status"],
        start_time=parse_datetime(row["start_time"]),
        end_time=parse_datetime(row["end_time"]),
        duration_minutes=row["duration_minutes"],
        score=row["score"],
        max_score=row["max_score"],
        percentage=row["percentage"],
        passed=bool(row["passed"]),
        question_results=[
            QuestionOutcome.from_dict(q) for q in json.loads(row["question_results"])
        ],
        total_questions=row["total_questions"],
        correct_answers=row["correct_answers"],
        incorrect_answers=row["incorrect_answers"],
        skipped_questions=row["skipped_questions"],
        average_time_per_question=row["average_time_per_question"],
        coins_earned=row["coins_earned"],
        streak_bonus=row["streak_bonus"],
    )
