"""
Values -- small immutable value types shared by domain, models and services.

Kernel > Domain, pure (no I/O).  models/ may import this module; it must
not import models/ in return.
"""

import calendar
from datetime import date
from enum import Enum


class CashKind(str, Enum):
    """Direction of a cash movement."""

    ENTREE = "ENTREE"  # Money in
    SORTIE = "SORTIE"  # Money out


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """
    First and last calendar day of a month, both inclusive.

    Uses the real month length: February 2024 ends on the 29th, February
    2023 on the 28th, April on the 30th.

    Raises:
        ValueError: If month is outside 1..12 or year outside date's range.
    """
    for value in (year, month):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"year and month must be integers, got {value!r}")
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
