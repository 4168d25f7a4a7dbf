"""SAT practice-test attempt core.

Attempt lifecycle, quota enforcement, scoring and reward accounting.
"""

__version__ = "0.1.0"
