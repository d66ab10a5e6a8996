from __future__ import annotations
import calendar
from datetime import date, timedelta

import pytest

from conftest import make_record
from memorial.anniversaries import (
    build_month_grid, memorial_bucket, month_summary, upcoming_anniversaries,
)


@pytest.mark.parametrize("anchor", [date(2024, 2, 10), date(2025, 2, 1), date(2024, 4, 30), date(2024, 12, 31)])
def test_grid_has_every_day_exactly_once(anchor):
    grid = build_month_grid([], anchor, today=date(2000, 1, 1))
    n = calendar.monthrange(anchor.year, anchor.month)[1]
    assert len(grid) == n
    assert [d.date.day for d in grid] == list(range(1, n + 1))
    assert all(d.is_current_month and d.records == () for d in grid)


def test_grid_matches_anniversaries_across_years(register):
    grid = build_month_grid(register, date(2025, 3, 1), today=date(2025, 3, 15))
    day15 = grid[14]
    assert [r.id for r in day15.records] == ["1"]
    assert day15.is_today
    assert sum(1 for d in grid if d.is_today) == 1
    assert sum(len(d.records) for d in grid) == 1


def test_grid_memorials_carry_years_and_bucket(register):
    grid = build_month_grid(register + [make_record("old", death=date(2010, 3, 2))],
                            date(2025, 3, 1), today=date(2025, 3, 15))
    alice = grid[14].memorials[0]
    assert (alice.record.id, alice.years_ago, alice.bucket) == ("1", 1, "recent")
    old = grid[1].memorials[0]
    assert (old.years_ago, old.bucket) == (15, "distant")


def test_grid_keeps_input_order_within_a_day():
    recs = [make_record("b", death=date(2001, 5, 4)), make_record("a", death=date(1999, 5, 4))]
    grid = build_month_grid(recs, date(2024, 5, 1), today=date(2024, 1, 1))
    assert [r.id for r in grid[3].records] == ["b", "a"]


def test_feb29_death_shows_on_feb28_in_non_leap_year():
    rec = make_record("leap", death=date(1996, 2, 29))
    grid = build_month_grid([rec], date(2025, 2, 1), today=date(2025, 1, 1))
    assert len(grid) == 28
    assert [r.id for r in grid[27].records] == ["leap"]

    leap_grid = build_month_grid([rec], date(2028, 2, 1), today=date(2025, 1, 1))
    assert [r.id for r in leap_grid[28].records] == ["leap"]
    assert leap_grid[27].records == ()


def test_grid_skips_unparseable_dates():
    grid = build_month_grid([make_record(death="31/31/2020")], date(2024, 1, 1), today=date(2024, 1, 1))
    assert all(d.records == () for d in grid)


def test_upcoming_counts_years_to_the_occurrence_year():
    rec = make_record("c", death=date(2019, 1, 2))
    feed = upcoming_anniversaries([rec], date(2024, 12, 28))
    assert len(feed) == 1
    assert feed[0].occurrence == date(2025, 1, 2)
    assert feed[0].years_ago == 6
    assert feed[0].days_until == 5
    assert feed[0].bucket == "mid"


def test_upcoming_window_bounds_and_order():
    today = date(2024, 6, 1)
    recs = [
        make_record("late", death=date(2010, 7, 1)),     # day 30: inside
        make_record("out", death=date(2010, 7, 2)),      # day 31: outside
        make_record("today", death=date(2015, 6, 1)),    # day 0
        make_record("past", death=date(2015, 5, 31)),    # next is 2025
        make_record("mid", death=date(2020, 6, 15)),
    ]
    feed = upcoming_anniversaries(recs, today, window_days=30, limit=None)
    assert [a.record.id for a in feed] == ["today", "mid", "late"]
    for a in feed:
        assert today <= a.occurrence <= today + timedelta(days=30)
    assert [a.occurrence for a in feed] == sorted(a.occurrence for a in feed)


def test_upcoming_limit_and_clamping():
    today = date(2024, 6, 1)
    recs = [make_record(str(i), death=date(2000, 6, 1 + i)) for i in range(10)]
    assert [a.record.id for a in upcoming_anniversaries(recs, today)] == ["0", "1", "2", "3", "4"]
    assert upcoming_anniversaries(recs, today, limit=-1) == []
    assert upcoming_anniversaries(recs, today, limit=0) == []
    # negative window means "today only"
    assert [a.record.id for a in upcoming_anniversaries(recs, today, window_days=-7)] == ["0"]


def test_upcoming_empty_and_none_inputs():
    assert upcoming_anniversaries([], date(2024, 1, 1)) == []
    with pytest.raises(TypeError):
        upcoming_anniversaries(None, date(2024, 1, 1))


def test_upcoming_leap_day_in_non_leap_year():
    feed = upcoming_anniversaries([make_record(death=date(1996, 2, 29))], date(2025, 2, 20))
    assert feed[0].occurrence == date(2025, 2, 28)
    assert feed[0].years_ago == 29


@pytest.mark.parametrize("years, bucket", [(-1, "recent"), (0, "recent"), (1, "recent"), (2, "near"),
                                           (5, "near"), (6, "mid"), (10, "mid"), (11, "distant")])
def test_memorial_bucket(years, bucket):
    assert memorial_bucket(years) == bucket


def test_month_summary(register):
    s = month_summary(register, date(2025, 3, 1), date(2025, 6, 20))
    assert s.total_memorials == 4
    assert s.this_month == 1
    # 2023-07-01 anniversary is 11 days after 2025-06-20
    assert s.upcoming == 1


def test_calendar_views_do_not_mutate_input(register):
    before = list(register)
    a = build_month_grid(register, date(2024, 7, 1), today=date(2024, 7, 1))
    b = build_month_grid(register, date(2024, 7, 1), today=date(2024, 7, 1))
    assert a == b
    assert register == before
