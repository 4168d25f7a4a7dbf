"""Repository functions for the users table.

Only the accounting subset used by the attempt core is stored here.
"""

from __future__ import annotations

import sqlite3

import structlog

from satprep.core.models import UserAccount
from satprep.db.database import use_db
from satprep.utils.dates import parse_date

logger = structlog.get_logger(__name__)


def insert_user(
    user_id: str,
    account_type: str = "free",
    conn: sqlite3.Connection | None = None,
) -> UserAccount:
    """Insert a new user record.

    Raises:
        sqlite3.IntegrityError: If user_id already exists
    """
    with use_db(conn) as db:
        db.execute(
            "INSERT INTO users (user_id, account_type) VALUES (?, ?)",
            (user_id, account_type.lower()),
        )

    logger.debug("users.inserted", user_id=user_id, account_type=account_type)
    return UserAccount(user_id=user_id, account_type=account_type.lower())


def get_user(
    user_id: str, conn: sqlite3.Connection | None = None
) -> UserAccount | None:
    """Get user by ID.

    Returns:
        UserAccount if found, None otherwise
    """
    with use_db(conn) as db:
        row = db.execute(
            "SELECT * FROM users WHERE user_id = ?", (user_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_user(row)


def save_user_accounting(
    user: UserAccount, conn: sqlite3.Connection | None = None
) -> None:
    """Persist the accounting fields mutated by the reward ledger."""
    with use_db(conn) as db:
        db.execute(
            """
            UPDATE users SET
                coins = ?,
                total_tests_taken = ?,
                average_accuracy = ?,
                login_streak = ?,
                last_test_completion_date = ?,
                last_coin_earned_date = ?,
                streak_bonus_used_today = ?
            WHERE user_id = ?
            """,
            (
                user.coins,
                user.total_tests_taken,
                user.average_accuracy,
                user.login_streak,
                _date_or_none(user.last_test_completion_date),
                _date_or_none(user.last_coin_earned_date),
                int(user.streak_bonus_used_today),
                user.user_id,
            ),
        )

    logger.debug("users.accounting_saved", user_id=user.user_id, coins=user.coins)


def update_account_type(
    user_id: str, account_type: str, conn: sqlite3.Connection | None = None
) -> bool:
    """Change a user's tier.

    Returns:
        True if updated, False if user not found
    """
    with use_db(conn) as db:
        cursor = db.execute(
            "UPDATE users SET account_type = ? WHERE user_id = ?",
            (account_type.lower(), user_id),
        )
        updated = cursor.rowcount > 0

    if updated:
        logger.info("users.tier_changed", user_id=user_id, account_type=account_type)
    return updated


def _date_or_none(value) -> str | None:
    return value.isoformat() if value is not None else None


def _row_to_user(row: sqlite3.Row) -> UserAccount:
    """Convert database row to UserAccount."""
    return UserAccount(
        user_id=row["user_id"],
        account_type=row["account_type"],
        coins=row["coins"],
        total_tests_taken=row["total_tests_taken"],
        average_accuracy=row["average_accuracy"],
        login_streak=row["login_streak"],
        last_test_completion_date=parse_date(row["last_test_completion_date"]),
        last_coin_earned_date=parse_date(row["last_coin_earned_date"]),
        streak_bonus_used_today=bool(row["streak_bonus_used_today"]),
    )
