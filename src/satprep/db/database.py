"""SQLite database connection and schema management.

Provides connection management, write transactions and schema
initialization for the attempt core.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from satprep.config.app_config import get_db_path

logger = structlog.get_logger(__name__)

# Seconds to wait on a locked database before raising
BUSY_TIMEOUT = 10.0

# Current database (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path.
    """
    global _db_path
    _db_path = db_path or get_db_path()

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def reset_db_path() -> None:
    """Forget the path set by init_db (for testing)."""
    global _db_path
    _db_path = None


def _connect() -> sqlite3.Connection:
    db_path = _db_path or get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Statements run in a deferred transaction that is committed on exit
    and rolled back on error.

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM attempts").fetchall()
    """
    conn = _connect()
    try:
        conn.execute("BEGIN")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction() -> Generator[sqlite3.Connection, None, None]:
    """Open a write transaction that holds the database write lock.

    BEGIN IMMEDIATE takes the reserved lock up front, so a read-check-write
    sequence inside the block cannot interleave with another writer. Either
    every statement in the block is committed or none is.
    """
    conn = _connect()
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def use_db(
    conn: sqlite3.Connection | None = None,
) -> Generator[sqlite3.Connection, None, None]:
    """Reuse the caller's connection, or open a new one."""
    if conn is not None:
        yield conn
        return
    with get_db() as new_conn:
        yield new_conn


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- users: accounting subset owned by the platform user store
        CREATE TABLE IF NOT EXISTS users (
            user_id TEXT PRIMARY KEY,
            account_type TEXT NOT NULL DEFAULT 'free',
            coins INTEGER NOT NULL DEFAULT 0 CHECK(coins >= 0),
            total_tests_taken INTEGER NOT NULL DEFAULT 0,
            average_accuracy REAL NOT NULL DEFAULT 0,
            login_streak INTEGER NOT NULL DEFAULT 0 CHECK(login_streak >= 0),
            last_test_completion_date TEXT,
            last_coin_earned_date TEXT,
            streak_bonus_used_today INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- tests: read-only reference for scoring
        CREATE TABLE IF NOT EXISTS tests (
            test_id TEXT PRIMARY KEY,
            title TEXT NOT NULL DEFAULT '',
            max_score INTEGER NOT NULL DEFAULT 1600,
            passing_score INTEGER NOT NULL DEFAULT 1000
        );

        -- attempts: one row per user run through a test
        CREATE TABLE IF NOT EXISTS attempts (
            attempt_id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(user_id),
            test_id TEXT NOT NULL REFERENCES tests(test_id),
            attempt_number INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'in-progress'
                CHECK(status IN ('in-progress', 'completed', 'abandoned', 'timeout')),
            start_time TEXT NOT NULL,
            end_time TEXT,
            duration_minutes INTEGER,
            score INTEGER,
            max_score INTEGER NOT NULL DEFAULT 1600,
            percentage INTEGER CHECK(percentage BETWEEN 0 AND 100),
            passed INTEGER NOT NULL DEFAULT 0,
            question_results TEXT NOT NULL DEFAULT '[]',
            total_questions INTEGER NOT NULL DEFAULT 0,
            correct_answers INTEGER NOT NULL DEFAULT 0,
            incorrect_answers INTEGER NOT NULL DEFAULT 0,
            skipped_questions INTEGER NOT NULL DEFAULT 0,
            average_time_per_question INTEGER NOT NULL DEFAULT 0,
            coins_earned INTEGER NOT NULL DEFAULT 0,
            streak_bonus INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- At most one in-progress attempt per (user, test)
        CREATE UNIQUE INDEX IF NOT EXISTS idx_attempts_one_in_progress
            ON attempts(user_id, test_id) WHERE status = 'in-progress';
        CREATE INDEX IF NOT EXISTS idx_attempts_user_test
            ON attempts(user_id, test_id, attempt_number);
        CREATE INDEX IF NOT EXISTS idx_attempts_status ON attempts(status);
        """
    )
