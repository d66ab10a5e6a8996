from __future__ import annotations
from datetime import date

import pytest

from conftest import make_record
from memorial.cohorts import aggregate, percent, resolve_window, round_half_up, yoy_delta

REF = date(2024, 6, 30)


def test_empty_register_gives_zeroed_stats():
    st = aggregate([], REF)
    assert st.total == 0
    assert st.yoy_delta == 0
    assert [b.count for b in st.bins] == [0] * 6
    assert [b.percentage for b in st.bins] == [0] * 6
    assert st.average_age == 0.0
    assert st.notification_rate == 0
    assert st.burial_percentage == st.cremation_percentage == 0
    assert len(st.monthly) == 12
    assert all(p.deaths == 0 and p.average_age == 0 for p in st.monthly)


def test_headline_metrics(register):
    st = aggregate(register, REF)
    assert st.total == 4
    assert st.excluded == 1
    assert st.unknown_age == 1
    assert (st.this_year, st.last_year, st.yoy_delta) == (2, 1, 100)
    assert st.this_month == 0
    assert (st.burial_count, st.cremation_count) == (3, 1)
    assert (st.burial_percentage, st.cremation_percentage) == (75, 25)
    assert st.average_age == 66.0
    assert (st.family_notified, st.notification_rate) == (3, 75)
    assert st.funeral_services_held == 3


def test_age_bins_exclude_unknown_ages(register):
    st = aggregate(register, REF)
    by_label = {b.label: b for b in st.bins}
    assert [b.label for b in st.bins] == ["0-18", "19-30", "31-50", "51-70", "71-85", "85+"]
    assert by_label["31-50"].count == 1
    assert by_label["71-85"].count == 1
    assert by_label["85+"].count == 1
    assert by_label["31-50"].percentage == 33
    assert sum(b.count for b in st.bins) == 3


@pytest.mark.parametrize("age, label", [(0, "0-18"), (18, "0-18"), (19, "19-30"), (30, "19-30"),
                                        (50, "31-50"), (70, "51-70"), (85, "71-85"), (86, "85+")])
def test_age_bin_boundaries_are_inclusive(age, label):
    rec = make_record(death=date(2024, 6, 1), birth=date(2024 - age, 1, 1))
    st = aggregate([rec], REF)
    assert {b.label: b.count for b in st.bins}[label] == 1


def test_percentages_sum_to_about_100_when_all_ages_known():
    recs = [make_record(str(i), death=date(2024, 1, 1), birth=date(2024 - age, 1, 1))
            for i, age in enumerate([5, 25, 40, 60, 80, 90, 91])]
    st = aggregate(recs, REF)
    assert abs(sum(b.percentage for b in st.bins) - 100) <= 3


def test_unknown_ages_lower_the_share_of_total():
    recs = [make_record("a", death=date(2024, 1, 1), birth=date(1950, 1, 1)),
            make_record("b", death=date(2024, 1, 1))]
    st = aggregate(recs, REF)
    # percentages are relative to known ages only
    assert sum(b.percentage for b in st.bins) == 100
    assert sum(b.count for b in st.bins) < st.total


def test_monthly_trend_is_fully_populated_and_ordered(register):
    st = aggregate(register, REF, 12)
    assert [p.month for p in st.monthly][0] == date(2023, 7, 1)
    assert [p.month for p in st.monthly][-1] == date(2024, 6, 1)
    by_month = {p.month: p for p in st.monthly}
    jul = by_month[date(2023, 7, 1)]
    assert (jul.deaths, jul.cremations, jul.average_age, jul.notified, jul.pending) == (1, 1, 33, 0, 1)
    jan = by_month[date(2024, 1, 1)]
    assert (jan.deaths, jan.burials, jan.average_age, jan.notified) == (1, 1, 0, 1)
    assert by_month[date(2024, 3, 1)].average_age == 73
    assert sum(p.deaths for p in st.monthly) == 3


def test_monthly_average_age_is_rounded_half_up():
    recs = [make_record("a", death=date(2024, 5, 1), birth=date(1954, 1, 1)),
            make_record("b", death=date(2024, 5, 2), birth=date(1953, 1, 1))]
    st = aggregate(recs, REF, 6)
    assert st.monthly[-2].average_age == 71  # mean 70.5


@pytest.mark.parametrize("requested, used", [(6, 6), (12, 12), (24, 24), (3, 3),
                                             (0, 12), (-5, 12), (None, 12), (60, 24)])
def test_window_is_clamped(requested, used):
    assert resolve_window(requested) == used
    assert len(aggregate([], REF, requested).monthly) == used


def test_yoy_delta_without_baseline_is_zero():
    assert yoy_delta(5, 0) == 0
    assert yoy_delta(3, 4) == -25
    assert yoy_delta(0, 4) == -100


def test_percent_guards_zero_denominator():
    assert percent(3, 0) == 0
    assert percent(1, 8) == 13
    assert round_half_up(2.5) == 3


def test_aggregate_is_idempotent(register):
    assert aggregate(register, REF) == aggregate(register, REF)


def test_birth_after_death_is_treated_as_unknown_age():
    st = aggregate([make_record(death=date(2020, 1, 1), birth=date(2021, 1, 1))], REF)
    assert st.unknown_age == 1
    assert sum(b.count for b in st.bins) == 0
