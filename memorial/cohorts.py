"""
Cohort aggregator
=================

Turns a list of death records into the numbers behind the analytics view:

- age-at-death distribution over fixed bins,
- a monthly trend over a trailing window (always fully populated),
- year-over-year change, burial/cremation split and headline metrics.

Every ratio goes through `percent`, which returns 0 for an empty
denominator. Records with an unparseable death date are counted in
`Stats.excluded` and take no part in anything else.
"""

from __future__ import annotations
import math
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .dates import add_months, age_at_death, month_start, to_date
from .models import BURIAL, CREMATION, AgeBin, DeathRecord, MonthlyPoint, Stats

# (label, low, high) with inclusive upper bounds; None = open-ended
AGE_BINS: Tuple[Tuple[str, int, Optional[int]], ...] = (
    ("0-18", 0, 18),
    ("19-30", 19, 30),
    ("31-50", 31, 50),
    ("51-70", 51, 70),
    ("71-85", 71, 85),
    ("85+", 86, None),
)

_Row = Tuple[DeathRecord, date, Optional[int]]


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def percent(part: float, whole: float) -> int:
    """`part / whole * 100` rounded to an integer; 0 when `whole` is 0."""
    if not whole:
        return 0
    return round_half_up(part / whole * 100)


def yoy_delta(this_year: int, last_year: int) -> int:
    """Percent change against last year; 0 when there is no baseline."""
    if last_year == 0:
        return 0
    return round_half_up((this_year - last_year) / last_year * 100)


def resolve_window(window_months: Optional[int]) -> int:
    """Trailing window length actually used.

    None or non-positive -> 12; longer than 24 -> 24.
    """
    if window_months is None or window_months <= 0:
        return config.DEFAULT_TREND_WINDOW
    return min(int(window_months), config.MAX_TREND_WINDOW)


def _rows(records: Sequence[DeathRecord]) -> Tuple[List[_Row], int]:
    rows: List[_Row] = []
    excluded = 0
    for r in records:
        death = to_date(r.date_of_death)
        if death is None:
            excluded += 1
            continue
        age = age_at_death(r.date_of_birth, death)
        rows.append((r, death, age))
    return rows, excluded


def age_distribution(ages: Sequence[Optional[int]]) -> List[AgeBin]:
    """Bucket known ages into AGE_BINS; unknown ages are ignored."""
    known = [a for a in ages if a is not None]
    out: List[AgeBin] = []
    for label, low, high in AGE_BINS:
        n = sum(1 for a in known if a >= low and (high is None or a <= high))
        out.append(AgeBin(label=label, low=low, high=high, count=n, percentage=percent(n, len(known))))
    return out


def monthly_trend(rows: Sequence[_Row], reference_date: date, window_months: int) -> List[MonthlyPoint]:
    by_month: Dict[Tuple[int, int], List[_Row]] = defaultdict(list)
    for row in rows:
        by_month[(row[1].year, row[1].month)].append(row)

    anchor = month_start(reference_date)
    points: List[MonthlyPoint] = []
    for i in range(window_months - 1, -1, -1):
        m = add_months(anchor, -i)
        bucket = by_month.get((m.year, m.month), [])
        ages = [age for _, _, age in bucket if age is not None]
        notified = sum(1 for r, _, _ in bucket if r.family_notified)
        points.append(MonthlyPoint(
            month=m,
            label=m.strftime("%b %Y"),
            deaths=len(bucket),
            burials=sum(1 for r, _, _ in bucket if r.burial_or_cremation == BURIAL),
            cremations=sum(1 for r, _, _ in bucket if r.burial_or_cremation == CREMATION),
            average_age=round_half_up(sum(ages) / len(ages)) if ages else 0,
            notified=notified,
            pending=len(bucket) - notified,
        ))
    return points


def aggregate(records: Sequence[DeathRecord], reference_date: date, window_months: Optional[int] = config.DEFAULT_TREND_WINDOW) -> Stats:
    """Compute cohort and trend statistics as of `reference_date`."""
    if records is None:
        raise TypeError("records must be a sequence, not None")
    window = resolve_window(window_months)
    rows, excluded = _rows(records)
    ages = [age for _, _, age in rows]
    known = [a for a in ages if a is not None]

    this_year = sum(1 for _, d, _ in rows if d.year == reference_date.year)
    last_year = sum(1 for _, d, _ in rows if d.year == reference_date.year - 1)
    this_month = sum(1 for _, d, _ in rows if (d.year, d.month) == (reference_date.year, reference_date.month))

    burials = sum(1 for r, _, _ in rows if r.burial_or_cremation == BURIAL)
    cremations = sum(1 for r, _, _ in rows if r.burial_or_cremation == CREMATION)
    notified = sum(1 for r, _, _ in rows if r.family_notified)
    funerals_held = 0
    for r, _, _ in rows:
        fd = to_date(r.funeral_date)
        if fd is not None and fd <= reference_date:
            funerals_held += 1

    return Stats(
        total=len(rows),
        reference_date=reference_date,
        window_months=window,
        bins=age_distribution(ages),
        monthly=monthly_trend(rows, reference_date, window),
        excluded=excluded,
        unknown_age=len(rows) - len(known),
        this_year=this_year,
        last_year=last_year,
        yoy_delta=yoy_delta(this_year, last_year),
        this_month=this_month,
        burial_count=burials,
        cremation_count=cremations,
        burial_percentage=percent(burials, burials + cremations),
        cremation_percentage=percent(cremations, burials + cremations),
        average_age=round(sum(known) / len(known), 1) if known else 0.0,
        family_notified=notified,
        notification_rate=percent(notified, len(rows)),
        funeral_services_held=funerals_held,
    )
