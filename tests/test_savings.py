from datetime import date

import pytest

from models import Cadence
from recommendations import Priority
from recurrence import ScheduledPayment, resolve_schedule
from savings import BudgetEntry, find_savings_opportunities
from spending import summarize_category


def _schedule(*committed_ids):
    payments = [
        ScheduledPayment(cid, 5_000, Cadence.monthly, date(2025, 1, 1))
        for cid in committed_ids
    ]
    return resolve_schedule(payments, date(2026, 2, 10), date(2026, 2, 28))


def test_discretionary_remainders_sorted_by_available_amount():
    budgets = {
        1: BudgetEntry(name="Dining", limit=200, spent_to_date=50),
        2: BudgetEntry(name="Coffee", limit=100, spent_to_date=99.5),
        3: BudgetEntry(name="Books", limit=50, spent_to_date=10),
        4: BudgetEntry(name="Rent", limit=500, spent_to_date=0),
        5: BudgetEntry(name="Gifts", limit=0, spent_to_date=0),
        6: BudgetEntry(name="Fuel", limit=80, spent_to_date=120),
    }
    opportunities = find_savings_opportunities(
        budgets, _schedule(4), {}, {1: 180.0}
    )

    assert [o.category_id for o in opportunities] == [1, 3]
    dining, books = opportunities
    assert dining.available_to_save == 150
    assert dining.remaining == 150
    assert dining.priority == Priority.medium
    assert dining.next_month_budget == 180.0
    assert dining.upcoming_recurring == 0
    assert "$150 left in Dining" in dining.message
    assert books.priority == Priority.low
    assert books.next_month_budget is None


def test_exactly_one_unit_left_is_reported():
    budgets = {1: BudgetEntry(name="Coffee", limit=20, spent_to_date=19)}
    [opp] = find_savings_opportunities(budgets, _schedule(), {}, {})
    assert opp.available_to_save == pytest.approx(1)


def test_committed_categories_are_never_listed():
    budgets = {cid: BudgetEntry(name=f"C{cid}", limit=300) for cid in range(1, 6)}
    schedule = _schedule(2, 4)
    opportunities = find_savings_opportunities(budgets, schedule, {}, {})
    assert all(not schedule.has_commitment(o.category_id) for o in opportunities)
    assert {o.category_id for o in opportunities} == {1, 3, 5}


def test_statistics_attached_when_available():
    stats = summarize_category(1, "Dining", {"2026-01": 4_000, "2025-12": 6_000})
    budgets = {1: BudgetEntry(name="Dining", limit=100, spent_to_date=0)}
    [opp] = find_savings_opportunities(budgets, _schedule(), {1: stats}, {})
    assert opp.stats == {"avg_spending": 50.0, "months_analyzed": 2}
