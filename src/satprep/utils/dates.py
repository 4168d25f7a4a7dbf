"""Calendar-day helpers and injectable clocks.

Streaks and the once-per-day bonus are keyed on calendar days, not on
24-hour windows. All day arithmetic goes through the helpers here so tests
can simulate a day rollover with a FixedClock.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock in a fixed timezone."""

    def __init__(self, tz: str = "UTC"):
        self.tz = timezone.utc if tz.upper() == "UTC" else ZoneInfo(tz)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock frozen at a given instant. Used in tests."""

    def __init__(self, current: datetime):
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self.current = current

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, days: int = 0, minutes: int = 0) -> None:
        """Move the clock forward."""
        self.current = self.current + timedelta(days=days, minutes=minutes)


def is_same_day(a: date | None, b: date | None) -> bool:
    """True if both dates are set and fall on the same calendar day."""
    if a is None or b is None:
        return False
    return a == b


def is_next_day(previous: date | None, current: date) -> bool:
    """True if current is exactly one calendar day after previous."""
    if previous is None:
        return False
    return (current - previous).days == 1


def parse_date(value: str | None) -> date | None:
    """Parse an ISO date (YYYY-MM-DD) stored in the database."""
    if not value:
        return None
    return date.fromisoformat(value)


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO timestamp stored in the database."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def format_datetime(value: datetime | None) -> str | None:
    """Serialize a timestamp for storage."""
    if value is None:
        return None
    return value.isoformat()
