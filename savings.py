from dataclasses import dataclass
from typing import Mapping, Optional

from recommendations import Priority
from recurrence import RecurringSchedule
from spending import CategorySpendingStatistic

MIN_AVAILABLE_TO_SAVE = 1
MEDIUM_PRIORITY_ABOVE = 100


@dataclass(frozen=True)
class BudgetEntry:
    name: str
    limit: float
    spent_to_date: float = 0.0


@dataclass(frozen=True)
class SavingsOpportunity:
    category_id: int
    category_name: str
    priority: Priority
    current_budget: float
    spent: float
    remaining: float
    upcoming_recurring: float
    available_to_save: float
    message: str
    stats: Optional[dict[str, float]] = None
    next_month_budget: Optional[float] = None


def find_savings_opportunities(
    budgets: Mapping[int, BudgetEntry],
    schedule: RecurringSchedule,
    stats_by_category: Mapping[int, CategorySpendingStatistic],
    next_month_limits: Mapping[int, float],
    *,
    currency_symbol: str = "$",
) -> list[SavingsOpportunity]:
    opportunities: list[SavingsOpportunity] = []
    for category_id, budget in budgets.items():
        if budget.limit <= 0 or schedule.has_commitment(category_id):
            continue
        remaining = budget.limit - budget.spent_to_date
        available = remaining
        if available < MIN_AVAILABLE_TO_SAVE:
            continue

        stats = stats_by_category.get(category_id)
        left = f"{currency_symbol}{round(remaining):,}"
        opportunities.append(
            SavingsOpportunity(
                category_id=category_id,
                category_name=budget.name,
                priority=(
                    Priority.medium
                    if available > MEDIUM_PRIORITY_ABOVE
                    else Priority.low
                ),
                current_budget=budget.limit,
                spent=round(budget.spent_to_date, 2),
                remaining=round(remaining, 2),
                upcoming_recurring=schedule.upcoming_by_category.get(
                    category_id, 0.0
                ),
                available_to_save=round(available, 2),
                message=(
                    f"You have {left} left in {budget.name} this month. If you "
                    f"don't spend it all, you could save up to "
                    f"{currency_symbol}{round(available):,}."
                ),
                stats=(
                    {
                        "avg_spending": stats.avg_monthly,
                        "months_analyzed": stats.months_with_data,
                    }
                    if stats
                    else None
                ),
                next_month_budget=next_month_limits.get(category_id),
            )
        )
    opportunities.sort(key=lambda o: o.available_to_save, reverse=True)
    return opportunities
