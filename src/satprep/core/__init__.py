"""Core business logic for the attempt subsystem.

Modules:
- scoring: Score and analytics for a submission (pure)
- quota: Tier-based attempt quota policy
- rewards: Coins, completion streak and daily streak bonus
- lifecycle: Start/resume/submit state machine
- analytics: Overview across completed attempts
- errors: Structured error taxonomy
"""

__all__ = [
    "analytics",
    "errors",
    "lifecycle",
    "models",
    "quota",
    "rewards",
    "scoring",
]
