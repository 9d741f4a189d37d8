from datetime import date

import pytest

from models import Cadence
from periods import month_period
from recurrence import (
    ScheduledPayment,
    monthly_equivalent,
    occurrences_in_window,
    projection_window,
    resolve_schedule,
)


def test_monthly_equivalent_multipliers():
    assert monthly_equivalent(15, Cadence.weekly) == pytest.approx(64.95)
    assert monthly_equivalent(100, Cadence.biweekly) == pytest.approx(217)
    assert monthly_equivalent(80, Cadence.monthly) == 80
    assert monthly_equivalent(300, Cadence.quarterly) == pytest.approx(100)
    assert monthly_equivalent(1200, Cadence.annually) == pytest.approx(100)


def test_current_month_projection_skips_elapsed_occurrences():
    today = date(2026, 2, 10)
    start, end = projection_window(month_period(2026, 2), today)
    assert (start, end) == (date(2026, 2, 10), date(2026, 2, 28))

    dates = occurrences_in_window(date(2025, 6, 15), Cadence.monthly, start, end)
    assert dates == [date(2026, 2, 15)]


def test_other_month_projection_covers_full_month():
    start, end = projection_window(month_period(2026, 3), date(2026, 2, 10))
    assert (start, end) == (date(2026, 3, 1), date(2026, 3, 31))


def test_monthly_cadence_keeps_day_and_clamps_short_months():
    dates = occurrences_in_window(
        date(2025, 1, 31), Cadence.monthly, date(2025, 1, 1), date(2025, 5, 31)
    )
    assert dates == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
        date(2025, 4, 30),
        date(2025, 5, 31),
    ]
    months = [(d.year, d.month) for d in dates]
    assert len(months) == len(set(months))


def test_day_based_cadences_advance_by_fixed_days():
    weekly = occurrences_in_window(
        date(2026, 1, 5), Cadence.weekly, date(2026, 2, 1), date(2026, 2, 28)
    )
    assert weekly == [
        date(2026, 2, 2),
        date(2026, 2, 9),
        date(2026, 2, 16),
        date(2026, 2, 23),
    ]

    quarterly = occurrences_in_window(
        date(2025, 1, 1), Cadence.quarterly, date(2025, 7, 1), date(2025, 7, 31)
    )
    assert quarterly == [date(2025, 7, 2)]


def test_occurrences_respect_start_and_end_dates():
    assert (
        occurrences_in_window(
            date(2026, 3, 1), Cadence.weekly, date(2026, 2, 1), date(2026, 2, 28)
        )
        == []
    )
    dates = occurrences_in_window(
        date(2026, 1, 1),
        Cadence.biweekly,
        date(2026, 2, 1),
        date(2026, 2, 28),
        end_date=date(2026, 2, 13),
    )
    assert dates == [date(2026, 2, 12)]


def test_resolve_schedule_marks_commitments_independent_of_amount():
    payments = [
        ScheduledPayment(1, 100_000, Cadence.monthly, date(2025, 1, 1)),
        ScheduledPayment(2, 1_500, Cadence.weekly, date(2026, 2, 2)),
        ScheduledPayment(2, 0, Cadence.annually, date(2020, 6, 1)),
        ScheduledPayment(None, 5_000, Cadence.monthly, date(2025, 1, 1)),
    ]
    schedule = resolve_schedule(payments, date(2026, 2, 10), date(2026, 2, 28))

    assert schedule.committed_category_ids == frozenset({1, 2})
    assert schedule.monthly_equivalent_by_category[1] == pytest.approx(1000)
    assert schedule.monthly_equivalent_by_category[2] == pytest.approx(64.95)
    assert 1 not in schedule.upcoming_by_category
    # Feb 16 and Feb 23; Feb 2 and Feb 9 already elapsed.
    assert schedule.upcoming_by_category[2] == pytest.approx(30)
    assert schedule.has_commitment(2)
    assert not schedule.has_commitment(3)
