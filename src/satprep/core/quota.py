"""Attempt quota policy.

Decides whether a user may start a new attempt on a test based on account
tier and the number of attempts already completed. Quota governs creating
attempts only; resuming an in-progress attempt is always allowed.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from satprep.core.models import Attempt
from satprep.db import attempts_repository

logger = structlog.get_logger(__name__)

# Sentinel for tiers without a limit
UNLIMITED = None

# Completed attempts allowed per test, by tier
DEFAULT_QUOTAS: dict[str, int | None] = {
    "admin": UNLIMITED,
    "mentor": UNLIMITED,
    "teacher": UNLIMITED,
    "student": 3,
    "free": 1,
}

# Limit for tiers missing from the table
DEFAULT_LIMIT = 1

# Tiers that get an upgrade path when denied
UPGRADE_ELIGIBLE_TIERS = frozenset({"free"})


@dataclass
class QuotaDecision:
    """Outcome of a quota check."""

    allowed: bool
    max_attempts: int | None  # None = unlimited
    reason: str | None = None
    upgrade_eligible: bool = False

    @property
    def unlimited(self) -> bool:
        return self.max_attempts is UNLIMITED


class AttemptQuotaPolicy:
    """Tier-based limit on completed attempts per test."""

    def __init__(self, quotas: dict[str, int | None] | None = None):
        self.quotas = dict(DEFAULT_QUOTAS)
        if quotas:
            self.quotas.update({k.lower(): v for k, v in quotas.items()})

    def max_attempts_for(self, account_tier: str | None) -> int | None:
        """Limit for a tier; None means unlimited."""
        tier = (account_tier or "").lower()
        return self.quotas.get(tier, DEFAULT_LIMIT)

    def can_start(self, account_tier: str | None, completed_count: int) -> QuotaDecision:
        """Check whether a new attempt may be created.

        Args:
            account_tier: User's account type
            completed_count: Completed attempts on this test so far

        Returns:
            QuotaDecision with the applicable limit
        """
        tier = (account_tier or "unknown").lower()
        max_attempts = self.max_attempts_for(tier)

        if max_attempts is UNLIMITED or completed_count < max_attempts:
            return QuotaDecision(allowed=True, max_attempts=max_attempts)

        upgrade = tier in UPGRADE_ELIGIBLE_TIERS
        reason = f"{tier} accounts are limited to {max_attempts} attempt(s) per test"
        if upgrade:
            reason += "; upgrade your account for more attempts"

        logger.info(
            "quota.denied",
            tier=tier,
            max_attempts=max_attempts,
            completed=completed_count,
        )
        return QuotaDecision(
            allowed=False,
            max_attempts=max_attempts,
            reason=reason,
            upgrade_eligible=upgrade,
        )

    def attempts_remaining(self, account_tier: str | None, completed_count: int) -> int | None:
        """Attempts left on a test, None if unlimited."""
        max_attempts = self.max_attempts_for(account_tier)
        if max_attempts is UNLIMITED:
            return None
        return max(max_attempts - completed_count, 0)

    def find_resumable(
        self,
        user_id: str,
        test_id: str,
        conn: sqlite3.Connection | None = None,
    ) -> Attempt | None:
        """Existing in-progress attempt for (user, test), if any."""
        return attempts_repository.find_in_progress(user_id, test_id, conn=conn)
