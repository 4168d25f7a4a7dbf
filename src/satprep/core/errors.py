"""Errors raised by the attempt core.

Each error carries a stable code and a to_dict() payload so boundaries
(HTTP routes, CLI) can surface it as a structured result.
"""

from __future__ import annotations

from typing import Any


class AttemptError(Exception):
    """Base error for attempt lifecycle failures."""

    code = "AttemptError"

    def to_dict(self) -> dict[str, Any]:
        """Structured payload for API responses."""
        return {"error": self.code, "message": str(self)}


class QuotaExceeded(AttemptError):
    """Tier's completed-attempt limit reached for this test."""

    code = "QuotaExceeded"

    def __init__(
        self,
        tier: str,
        max_attempts: int,
        current_attempts: int,
        upgrade_eligible: bool = False,
        reason: str | None = None,
    ):
        self.tier = tier
        self.max_attempts = max_attempts
        self.current_attempts = current_attempts
        self.upgrade_eligible = upgrade_eligible
        reason = reason or f"{tier} accounts are limited to {max_attempts}"
        super().__init__(f"Maximum attempts reached for this test ({reason})")

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "tier": self.tier,
            "max_attempts": self.max_attempts,
            "current_attempts": self.current_attempts,
            "upgrade_eligible": self.upgrade_eligible,
        }


class AlreadyCompleted(AttemptError):
    """Attempt already reached a terminal status."""

    code = "AlreadyCompleted"

    def __init__(self, attempt_id: str, status: str):
        self.attempt_id = attempt_id
        self.status = status
        super().__init__(f"Attempt '{attempt_id}' is already {status}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "attempt_id": self.attempt_id, "status": self.status}


class AccessDenied(AttemptError):
    """Requester does not own the attempt."""

    code = "AccessDenied"

    def __init__(self, attempt_id: str):
        self.attempt_id = attempt_id
        super().__init__("Access denied")


class NotFound(AttemptError):
    """Attempt, user or test missing."""

    code = "NotFound"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} '{identifier}' not found")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "kind": self.kind}
