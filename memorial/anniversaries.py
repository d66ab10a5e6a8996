"""
Memorial calendar builder
=========================

Two views over the same records:

1) `build_month_grid` - one `CalendarDay` per day of a month, each listing
   the records whose death anniversary (month + day, any year) falls on it.
2) `upcoming_anniversaries` - the next occurrence of every anniversary,
   kept when it falls within a look-ahead window and ranked by date.

A Feb 29 death is remembered on Feb 28 in non-leap years, in both views.
The displayed month is a parameter; nothing is remembered between calls.
"""

from __future__ import annotations
import heapq
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from . import config
from .dates import anniversary_date, days_in_month, next_anniversary, to_date, years_ago
from .models import CalendarDay, DeathRecord, Memorial, MonthSummary, RankedAnniversary

RECENT = "recent"
NEAR = "near"
MID = "mid"
DISTANT = "distant"


def memorial_bucket(years_ago: int) -> str:
    """Display bucket for a memorial by how long ago the death was."""
    if years_ago <= 1:
        return RECENT
    if years_ago <= 5:
        return NEAR
    if years_ago <= 10:
        return MID
    return DISTANT


def build_month_grid(records: Sequence[DeathRecord], month_anchor: date, today: Optional[date] = None) -> List[CalendarDay]:
    """Day-by-day grid for the month containing `month_anchor`.

    Each memorial carries `years_ago` as the plain year difference to the
    displayed month, and the matching display bucket.
    """
    if records is None:
        raise TypeError("records must be a sequence, not None")
    today = today or date.today()
    year, month = month_anchor.year, month_anchor.month

    by_day: Dict[int, List[Memorial]] = {}
    for r in records:
        death = to_date(r.date_of_death)
        if death is None:
            continue
        occ = anniversary_date(death, year)
        if occ.month == month:
            years = years_ago(death, month_anchor)
            by_day.setdefault(occ.day, []).append(Memorial(record=r, years_ago=years, bucket=memorial_bucket(years)))

    grid: List[CalendarDay] = []
    for day in range(1, days_in_month(year, month) + 1):
        d = date(year, month, day)
        grid.append(CalendarDay(
            date=d,
            is_today=(d == today),
            is_current_month=True,
            memorials=tuple(by_day.get(day, ())),
        ))
    return grid


def upcoming_anniversaries(
    records: Sequence[DeathRecord],
    today: date,
    window_days: int = config.DEFAULT_ANNIVERSARY_DAYS,
    limit: Optional[int] = config.DEFAULT_ANNIVERSARY_LIMIT,
) -> List[RankedAnniversary]:
    """Anniversaries falling in `[today, today + window_days]`, soonest first.

    A negative `window_days` is treated as 0 (today only). A negative `limit`
    gives an empty feed; None means no limit. `years_ago` is counted to the
    occurrence year, so a Jan 1 anniversary seen from late December is one
    year older.
    """
    if records is None:
        raise TypeError("records must be a sequence, not None")
    window_days = max(0, int(window_days or 0))
    end = today + timedelta(days=window_days)

    hits: List[RankedAnniversary] = []
    for r in records:
        death = to_date(r.date_of_death)
        if death is None:
            continue
        occ = next_anniversary(death, today)
        if occ > end:
            continue
        years = occ.year - death.year
        hits.append(RankedAnniversary(
            record=r,
            occurrence=occ,
            years_ago=years,
            days_until=(occ - today).days,
            bucket=memorial_bucket(years),
        ))

    if limit is None:
        return sorted(hits, key=lambda h: h.occurrence)
    if limit <= 0:
        return []
    # heapq.nsmallest is stable for equal keys, like sorted(...)[:limit]
    return heapq.nsmallest(limit, hits, key=lambda h: h.occurrence)


def month_summary(records: Sequence[DeathRecord], month_anchor: date, today: date) -> MonthSummary:
    """Counters shown above the calendar."""
    valid = [r for r in records if to_date(r.date_of_death) is not None]
    in_month = sum(len(day.records) for day in build_month_grid(valid, month_anchor, today))
    upcoming = upcoming_anniversaries(valid, today, limit=None)
    return MonthSummary(total_memorials=len(valid), this_month=in_month, upcoming=len(upcoming))
