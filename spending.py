"""Per-category monthly spending statistics over the trailing history window."""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

HISTORY_MONTHS = 6
TREND_SLICE_MONTHS = 3


@dataclass(frozen=True)
class ExpenseRecord:
    category_id: Optional[int]
    category_name: Optional[str]
    month: str  # YYYY-MM
    amount_cents: int


@dataclass(frozen=True)
class CategorySpendingStatistic:
    category_id: int
    category_name: str
    avg_monthly: float
    min_monthly: float
    max_monthly: float
    std_dev: float
    months_with_data: int
    recent_3_avg: float
    prior_3_avg: float
    monthly_totals: tuple[tuple[str, float], ...] = ()


def _round_money(value: float) -> float:
    return round(value, 2)


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _population_std_dev(values: list[float], mean: float) -> float:
    if len(values) <= 1:
        return 0.0
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return math.sqrt(variance)


def monthly_totals_by_category(
    records: Iterable[ExpenseRecord],
) -> tuple[dict[int, dict[str, int]], dict[int, str]]:
    totals: dict[int, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    names: dict[int, str] = {}
    for record in records:
        if record.category_id is None:
            continue
        totals[record.category_id][record.month] += abs(record.amount_cents)
        names.setdefault(record.category_id, record.category_name or "Unknown")
    return totals, names


def summarize_category(
    category_id: int, category_name: str, months: dict[str, int]
) -> CategorySpendingStatistic:
    # Months without transactions are absent, not zero.
    amounts = [cents / 100 for cents in months.values()]
    avg = _mean(amounts)
    std_dev = _population_std_dev(amounts, avg)

    by_month_desc = sorted(months.items(), key=lambda item: item[0], reverse=True)
    recent = [cents / 100 for _, cents in by_month_desc[:TREND_SLICE_MONTHS]]
    prior = [
        cents / 100
        for _, cents in by_month_desc[TREND_SLICE_MONTHS : TREND_SLICE_MONTHS * 2]
    ]

    return CategorySpendingStatistic(
        category_id=category_id,
        category_name=category_name,
        avg_monthly=_round_money(avg),
        min_monthly=_round_money(min(amounts)),
        max_monthly=_round_money(max(amounts)),
        std_dev=_round_money(std_dev),
        months_with_data=len(amounts),
        recent_3_avg=_round_money(_mean(recent)),
        prior_3_avg=_round_money(_mean(prior)),
        monthly_totals=tuple(
            (month, _round_money(cents / 100)) for month, cents in sorted(months.items())
        ),
    )


def aggregate_spending(
    records: Iterable[ExpenseRecord],
) -> list[CategorySpendingStatistic]:
    totals, names = monthly_totals_by_category(records)
    stats = []
    for category_id, months in totals.items():
        if not months:
            continue
        stats.append(summarize_category(category_id, names[category_id], months))
    return stats
