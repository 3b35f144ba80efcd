# barbershop/core.py

import re
from datetime import date, datetime, timezone
from typing import Optional


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) overlap: ranges that only touch do not overlap."""
    return a_start < b_end and b_start < a_end


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store times as naive UTC; offset-aware input is converted, naive input kept."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def anniversary(since: date, year: int) -> date:
    """``since`` moved to ``year``; Feb 29 falls on Feb 28 in common years."""
    try:
        return since.replace(year=year)
    except ValueError:
        return since.replace(year=year, day=28)


def full_years(since: date, as_of: date) -> int:
    """
    Whole years elapsed from ``since`` to ``as_of``.

    One year is subtracted when the anniversary has not come around yet in
    ``as_of``'s year, so 2005-03-05 -> 2025-03-04 is 19 and -> 2025-03-05 is 20.
    A Feb 29 start counts its anniversary on Feb 28 of a common year.
    """
    years = as_of.year - since.year
    if anniversary(since, as_of.year) > as_of:
        years -= 1
    return years


def normalize_phone(value: str) -> str:
    """Strip everything except digits and a leading +.

    >>> normalize_phone("+380 (50) 111-22-33")
    '+380501112233'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)
