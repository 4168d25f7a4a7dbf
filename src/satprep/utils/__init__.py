"""Utility functions for satprep."""

from satprep.utils.dates import (
    Clock,
    FixedClock,
    SystemClock,
    is_next_day,
    is_same_day,
    parse_date,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "is_next_day",
    "is_same_day",
    "parse_date",
]
