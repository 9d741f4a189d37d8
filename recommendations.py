"""Budget recommendation rules.

Each category is reduced to an immutable :class:`CategoryFacts` record and run
through :data:`RULES` in order. A rule that fires and has ``stops_evaluation``
set ends evaluation for that category; every other rule is independent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from spending import CategorySpendingStatistic

UNDERFUNDED_RATIO = 1.2
OVERFUNDED_RATIO = 0.5
HIGH_VARIANCE_RATIO = 0.5
HIGH_VARIANCE_MIN_MONTHS = 3
TRENDING_UP_PERCENT = 15


class RecommendationType(str, Enum):
    no_budget = "no_budget"
    underfunded = "underfunded"
    overfunded = "overfunded"
    high_variance = "high_variance"
    trending_up = "trending_up"


class Priority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


PRIORITY_RANK = {Priority.high: 0, Priority.medium: 1, Priority.low: 2}


@dataclass(frozen=True)
class CategoryFacts:
    stats: CategorySpendingStatistic
    limit: float = 0.0
    next_month_limit: Optional[float] = None
    currency_symbol: str = "$"

    @property
    def has_limit(self) -> bool:
        return self.limit > 0

    @property
    def avg(self) -> float:
        return self.stats.avg_monthly

    def money(self, amount: float) -> str:
        return f"{self.currency_symbol}{amount:.2f}"


@dataclass(frozen=True)
class Recommendation:
    category_id: int
    category_name: str
    type: RecommendationType
    priority: Priority
    current_budget: float
    avg_spending: float
    suggested_budget: int
    message: str
    stats: dict[str, float]
    trend_percent: Optional[int] = None
    next_month_budget: Optional[float] = None

    @property
    def budget_gap(self) -> float:
        return abs(self.avg_spending - self.current_budget)


def _base_stats(facts: CategoryFacts) -> dict[str, float]:
    return {
        "min": facts.stats.min_monthly,
        "max": facts.stats.max_monthly,
        "std_dev": facts.stats.std_dev,
        "months_analyzed": facts.stats.months_with_data,
    }


def _build(
    facts: CategoryFacts,
    kind: RecommendationType,
    priority: Priority,
    suggested: int,
    message: str,
    *,
    stats: Optional[dict[str, float]] = None,
    trend_percent: Optional[int] = None,
) -> Recommendation:
    return Recommendation(
        category_id=facts.stats.category_id,
        category_name=facts.stats.category_name,
        type=kind,
        priority=priority,
        current_budget=facts.limit if facts.has_limit else 0.0,
        avg_spending=facts.avg,
        suggested_budget=suggested,
        message=message,
        stats=stats if stats is not None else _base_stats(facts),
        trend_percent=trend_percent,
        next_month_budget=facts.next_month_limit,
    )


def _no_budget(facts: CategoryFacts) -> Optional[Recommendation]:
    if facts.has_limit or facts.avg <= 0:
        return None
    suggested = math.ceil(facts.avg * 1.1)
    name = facts.stats.category_name
    return _build(
        facts,
        RecommendationType.no_budget,
        Priority.medium,
        suggested,
        f"You spend an average of {facts.money(facts.avg)}/month on {name}, "
        f"but have no budget set. Consider setting a limit of "
        f"{facts.currency_symbol}{suggested}.",
    )


def _underfunded(facts: CategoryFacts) -> Optional[Recommendation]:
    if not facts.has_limit or facts.avg <= facts.limit * UNDERFUNDED_RATIO:
        return None
    suggested = math.ceil(facts.avg * 1.05)
    name = facts.stats.category_name
    return _build(
        facts,
        RecommendationType.underfunded,
        Priority.high,
        suggested,
        f"You typically spend {facts.money(facts.avg)}/month on {name}, but "
        f"your budget is only {facts.money(facts.limit)}. Consider increasing "
        f"to {facts.currency_symbol}{suggested}.",
    )


def _overfunded(facts: CategoryFacts) -> Optional[Recommendation]:
    if not facts.has_limit or not 0 < facts.avg < facts.limit * OVERFUNDED_RATIO:
        return None
    suggested = math.ceil(facts.avg * 1.2)
    savings = facts.limit - suggested
    name = facts.stats.category_name
    return _build(
        facts,
        RecommendationType.overfunded,
        Priority.low,
        suggested,
        f"Your {name} budget of {facts.money(facts.limit)} is more than double "
        f"your average spending of {facts.money(facts.avg)}/month. Consider "
        f"reducing to {facts.currency_symbol}{suggested} to reallocate "
        f"{facts.money(savings)}.",
    )


def _high_variance(facts: CategoryFacts) -> Optional[Recommendation]:
    stats = facts.stats
    if not facts.has_limit or facts.avg <= 0:
        return None
    if stats.months_with_data < HIGH_VARIANCE_MIN_MONTHS:
        return None
    if stats.std_dev <= facts.avg * HIGH_VARIANCE_RATIO:
        return None
    suggested = math.ceil(facts.avg + math.ceil(stats.std_dev))
    if suggested <= facts.limit:
        return None
    return _build(
        facts,
        RecommendationType.high_variance,
        Priority.medium,
        suggested,
        f"Your {stats.category_name} spending varies significantly "
        f"({facts.money(stats.min_monthly)} - {facts.money(stats.max_monthly)}). "
        f"Consider a budget of {facts.currency_symbol}{suggested} to account "
        f"for fluctuations.",
    )


def _trending_up(facts: CategoryFacts) -> Optional[Recommendation]:
    stats = facts.stats
    if not facts.has_limit or stats.prior_3_avg <= 0 or stats.recent_3_avg <= 0:
        return None
    change = (stats.recent_3_avg - stats.prior_3_avg) / stats.prior_3_avg * 100
    if change <= TRENDING_UP_PERCENT:
        return None
    suggested = math.ceil(stats.recent_3_avg * 1.1)
    if suggested <= facts.limit:
        return None
    percent = round(change)
    trend_stats = _base_stats(facts)
    trend_stats["recent_3_avg"] = stats.recent_3_avg
    trend_stats["prior_3_avg"] = stats.prior_3_avg
    return _build(
        facts,
        RecommendationType.trending_up,
        Priority.medium,
        suggested,
        f"Your {stats.category_name} spending has increased {percent}% over the "
        f"last 3 months (from {facts.money(stats.prior_3_avg)} to "
        f"{facts.money(stats.recent_3_avg)}/month). Consider adjusting your "
        f"budget to {facts.currency_symbol}{suggested}.",
        stats=trend_stats,
        trend_percent=percent,
    )


@dataclass(frozen=True)
class Rule:
    name: str
    evaluate: Callable[[CategoryFacts], Optional[Recommendation]]
    stops_evaluation: bool = False


RULES: tuple[Rule, ...] = (
    Rule("no_budget", _no_budget, stops_evaluation=True),
    Rule("underfunded", _underfunded, stops_evaluation=True),
    Rule("overfunded", _overfunded),
    Rule("high_variance", _high_variance),
    Rule("trending_up", _trending_up),
)


def evaluate_category(
    facts: CategoryFacts, rules: Iterable[Rule] = RULES
) -> list[Recommendation]:
    results: list[Recommendation] = []
    for rule in rules:
        recommendation = rule.evaluate(facts)
        if recommendation is None:
            continue
        results.append(recommendation)
        if rule.stops_evaluation:
            break
    return results


def sort_recommendations(items: Iterable[Recommendation]) -> list[Recommendation]:
    return sorted(items, key=lambda r: (PRIORITY_RANK[r.priority], -r.budget_gap))


@dataclass(frozen=True)
class RuleEngineResult:
    recommendations: list[Recommendation]
    potential_savings: float
    total_overspending: float


def run_rules(facts_list: Iterable[CategoryFacts]) -> RuleEngineResult:
    recommendations: list[Recommendation] = []
    potential_savings = 0.0
    total_overspending = 0.0
    for facts in facts_list:
        for rec in evaluate_category(facts):
            if rec.type == RecommendationType.overfunded:
                potential_savings += rec.current_budget - rec.suggested_budget
            elif rec.type == RecommendationType.underfunded:
                total_overspending += rec.avg_spending - rec.current_budget
            recommendations.append(rec)
    return RuleEngineResult(
        recommendations=sort_recommendations(recommendations),
        potential_savings=round(potential_savings, 2),
        total_overspending=round(total_overspending, 2),
    )
