"""
Date and age utilities
======================

Pure helpers used by every derived view:
- `to_date` turns whatever an export supplied into a `date` (or None),
- `age_at_death` / `years_ago` compute the two age figures the register shows,
- `anniversary_date` / `next_anniversary` place a death date on a later year,
- small month-arithmetic helpers used by the trend window and the calendar.

None of these raise on bad data: an unparseable value becomes None and the
caller skips the record for whatever needed that date.
"""

from __future__ import annotations
import calendar
import re
from datetime import date, datetime
from typing import Any, Optional, Tuple

# Accepted string formats, tried in order after ISO
_FORMATS = ("%d/%m/%Y", "%Y/%m/%d", "%d-%m-%Y", "%d.%m.%Y")

# date alone, or followed by a time part (T or space)
_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$")


def to_date(value: Any) -> Optional[date]:
    """Coerce a date-like value to `datetime.date`, or None if it can't be."""
    if value is None:
        return None
    if isinstance(value, str):
        return _parse_str(value)
    # NaN / NaT from pandas never equal themselves
    try:
        if value != value:
            return None
    except (TypeError, ValueError):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _parse_str(s: str) -> Optional[date]:
    s = s.strip()
    if not s:
        return None
    m = _ISO_PREFIX.match(s)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None
    for fmt in _FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            pass
    return None


def age_at_death(birth: Any, death: Any) -> Optional[int]:
    """Age in whole years on the day of death.

    Year difference, minus one when the birthday had not come round yet in
    the year of death. None when either date is missing or unparseable, or
    when the birth date falls after the death date.
    """
    b = to_date(birth)
    d = to_date(death)
    if b is None or d is None:
        return None
    age = d.year - b.year
    if (d.month, d.day) < (b.month, b.day):
        age -= 1
    return age if age >= 0 else None


def years_ago(death: Any, today: date) -> Optional[int]:
    """Plain year difference `today.year - death.year`.

    No day-level adjustment, and a death date in the future gives a negative
    number which is returned as is.
    """
    d = to_date(death)
    if d is None:
        return None
    return today.year - d.year


def anniversary_date(death: date, year: int) -> date:
    """The anniversary of `death` in `year` (Feb 29 becomes Feb 28 off leap years)."""
    try:
        return death.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


def next_anniversary(death: date, today: date) -> date:
    """First anniversary of `death` falling on or after `today`."""
    occ = anniversary_date(death, today.year)
    if occ < today:
        occ = anniversary_date(death, today.year + 1)
    return occ


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_start(d: date) -> date:
    return date(d.year, d.month, 1)


def add_months(d: date, n: int) -> date:
    """First day of the month `n` months away from `d` (n may be negative)."""
    idx = d.year * 12 + (d.month - 1) + n
    return date(idx // 12, idx % 12 + 1, 1)


def prev_month(year: int, month: int) -> Tuple[int, int]:
    """Return (year, month) for one month earlier."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> Tuple[int, int]:
    """Return (year, month) for one month later."""
    if month == 12:
        return year + 1, 1
    return year, month + 1


def parse_month(text: str) -> date:
    """Parse a `YYYY-MM` month selector into the first day of that month."""
    y, m = map(int, text.strip().split("-"))
    return date(y, m, 1)
