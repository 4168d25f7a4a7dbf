"""Database module for SQLite persistence.

Provides:
- Database connection management and write transactions
- Schema initialization
- Repository functions for users, tests and attempts
"""

from satprep.db.database import get_db, init_db, transaction

__all__ = ["get_db", "init_db", "transaction"]
