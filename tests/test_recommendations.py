from dataclasses import replace

import pytest

from recommendations import (
    RULES,
    CategoryFacts,
    Priority,
    RecommendationType,
    evaluate_category,
    run_rules,
    sort_recommendations,
)
from spending import CategorySpendingStatistic, summarize_category


def _stats(**overrides) -> CategorySpendingStatistic:
    values = dict(
        category_id=1,
        category_name="Groceries",
        avg_monthly=100.0,
        min_monthly=90.0,
        max_monthly=110.0,
        std_dev=5.0,
        months_with_data=4,
        recent_3_avg=100.0,
        prior_3_avg=100.0,
    )
    values.update(overrides)
    return CategorySpendingStatistic(**values)


def _types(recs):
    return [r.type for r in recs]


def test_underfunded_category():
    facts = CategoryFacts(
        stats=summarize_category(
            1,
            "Groceries",
            {"2025-10": 8_000, "2025-11": 9_500, "2025-12": 11_000, "2026-01": 9_000},
        ),
        limit=60,
    )
    [rec] = evaluate_category(facts)
    assert rec.type == RecommendationType.underfunded
    assert rec.priority == Priority.high
    assert rec.avg_spending == 93.75
    assert rec.suggested_budget == 99
    assert "$93.75" in rec.message and "$99" in rec.message


def test_underfunded_stops_later_rules():
    # Trending up as well, but only the underfunded advice is given.
    facts = CategoryFacts(
        stats=_stats(avg_monthly=200, std_dev=150, recent_3_avg=300, prior_3_avg=100),
        limit=100,
    )
    assert _types(evaluate_category(facts)) == [RecommendationType.underfunded]


def test_overfunded_category_contributes_potential_savings():
    facts = CategoryFacts(stats=_stats(avg_monthly=20, std_dev=0), limit=60)
    result = run_rules([facts])
    [rec] = result.recommendations
    assert rec.type == RecommendationType.overfunded
    assert rec.priority == Priority.low
    assert rec.suggested_budget == 24
    assert result.potential_savings == 36


def test_no_budget_category():
    facts = CategoryFacts(stats=_stats(avg_monthly=45, std_dev=40, prior_3_avg=10))
    [rec] = evaluate_category(facts)
    assert rec.type == RecommendationType.no_budget
    assert rec.priority == Priority.medium
    assert rec.current_budget == 0
    assert rec.suggested_budget == 50


def test_no_budget_requires_spending():
    facts = CategoryFacts(stats=_stats(avg_monthly=0, std_dev=0))
    assert evaluate_category(facts) == []


def test_high_variance_needs_three_months_and_a_higher_suggestion():
    volatile = _stats(avg_monthly=80, std_dev=50, months_with_data=3)
    [rec] = evaluate_category(CategoryFacts(stats=volatile, limit=90))
    assert rec.type == RecommendationType.high_variance
    assert rec.suggested_budget == 130

    short = replace(volatile, months_with_data=2)
    assert evaluate_category(CategoryFacts(stats=short, limit=90)) == []

    assert evaluate_category(CategoryFacts(stats=volatile, limit=130)) == []


def test_trending_up_carries_rounded_percent():
    stats = _stats(avg_monthly=95, recent_3_avg=119, prior_3_avg=70)
    [rec] = evaluate_category(CategoryFacts(stats=stats, limit=100))
    assert rec.type == RecommendationType.trending_up
    assert rec.trend_percent == 70
    assert rec.suggested_budget == 131
    assert rec.stats["recent_3_avg"] == 119
    assert rec.stats["prior_3_avg"] == 70


def test_trending_up_ignored_without_prior_months():
    stats = _stats(avg_monthly=95, recent_3_avg=120, prior_3_avg=0)
    assert evaluate_category(CategoryFacts(stats=stats, limit=100)) == []


def test_high_variance_and_trending_up_fire_together():
    stats = summarize_category(
        7,
        "Car",
        {
            "2025-08": 2_000,
            "2025-09": 2_000,
            "2025-10": 2_000,
            "2025-11": 4_000,
            "2025-12": 20_000,
            "2026-01": 20_000,
        },
    )
    recs = evaluate_category(CategoryFacts(stats=stats, limit=80))
    assert _types(recs) == [
        RecommendationType.high_variance,
        RecommendationType.trending_up,
    ]
    assert recs[0].suggested_budget == 167


def test_rules_are_individually_callable():
    facts = CategoryFacts(stats=_stats(avg_monthly=20, std_dev=0), limit=60)
    by_name = {rule.name: rule for rule in RULES}
    assert by_name["overfunded"].evaluate(facts) is not None
    assert by_name["underfunded"].evaluate(facts) is None
    assert by_name["no_budget"].stops_evaluation
    assert by_name["underfunded"].stops_evaluation
    assert not by_name["overfunded"].stops_evaluation


def test_recommendations_sorted_by_priority_then_gap():
    facts = [
        CategoryFacts(stats=_stats(category_id=1, avg_monthly=20, std_dev=0), limit=60),
        CategoryFacts(stats=_stats(category_id=2, avg_monthly=45, std_dev=0)),
        CategoryFacts(stats=_stats(category_id=3, avg_monthly=300, std_dev=0)),
        CategoryFacts(stats=_stats(category_id=4, avg_monthly=150, std_dev=0), limit=100),
    ]
    result = run_rules(facts)
    assert [r.category_id for r in result.recommendations] == [4, 3, 2, 1]
    assert result.total_overspending == 50

    ranks = {Priority.high: 0, Priority.medium: 1, Priority.low: 2}
    keys = [(ranks[r.priority], -r.budget_gap) for r in result.recommendations]
    assert keys == sorted(keys)
    assert sort_recommendations(reversed(result.recommendations)) == result.recommendations


def test_underfunded_and_overfunded_never_both_fire():
    for avg in (0.5, 10, 29.99, 30, 60, 72, 72.01, 500):
        facts = CategoryFacts(stats=_stats(avg_monthly=avg, std_dev=0), limit=60)
        types = set(_types(evaluate_category(facts)))
        assert not {
            RecommendationType.underfunded,
            RecommendationType.overfunded,
        } <= types


def test_next_month_budget_is_attached():
    facts = CategoryFacts(
        stats=_stats(avg_monthly=20, std_dev=0), limit=60, next_month_limit=45.0
    )
    [rec] = evaluate_category(facts)
    assert rec.next_month_budget == pytest.approx(45.0)
