import pytest

from spending import ExpenseRecord, aggregate_spending, summarize_category


def _record(category_id, month, amount_cents, name="Groceries"):
    return ExpenseRecord(
        category_id=category_id,
        category_name=name,
        month=month,
        amount_cents=amount_cents,
    )


def test_monthly_sums_and_statistics() -> None:
    records = [
        _record(1, "2025-10", 5_000),
        _record(1, "2025-10", 3_000),
        _record(1, "2025-11", 9_500),
        _record(1, "2025-12", 11_000),
        _record(1, "2026-01", 9_000),
    ]
    [stats] = aggregate_spending(records)

    assert stats.category_id == 1
    assert stats.months_with_data == 4
    assert stats.avg_monthly == 93.75
    assert stats.min_monthly == 80
    assert stats.max_monthly == 110
    assert stats.std_dev == 10.83
    assert stats.recent_3_avg == pytest.approx(98.33)
    assert stats.prior_3_avg == 80


def test_negative_amounts_are_counted_by_magnitude() -> None:
    [stats] = aggregate_spending(
        [_record(1, "2026-01", -4_000), _record(1, "2026-01", 1_000)]
    )
    assert stats.avg_monthly == 50


def test_gaps_are_not_zero_filled() -> None:
    [stats] = aggregate_spending(
        [_record(1, "2025-09", 10_000), _record(1, "2026-01", 10_000)]
    )
    assert stats.months_with_data == 2
    assert stats.avg_monthly == 100
    assert stats.min_monthly == 100


def test_single_month_has_zero_std_dev() -> None:
    [stats] = aggregate_spending([_record(1, "2026-01", 12_345)])
    assert stats.std_dev == 0
    assert stats.prior_3_avg == 0


def test_uncategorized_records_are_ignored() -> None:
    stats = aggregate_spending(
        [_record(None, "2026-01", 10_000), _record(2, "2026-01", 500, name="Fun")]
    )
    assert [s.category_id for s in stats] == [2]


def test_empty_history_yields_no_statistics() -> None:
    assert aggregate_spending([]) == []


def test_average_reconstructs_monthly_totals() -> None:
    months = {
        "2025-09": 3_333,
        "2025-10": 12_001,
        "2025-11": 7_777,
        "2025-12": 1_999,
        "2026-01": 4_242,
        "2026-02": 10_000,
    }
    stats = summarize_category(3, "Travel", months)
    total = sum(months.values()) / 100
    assert stats.avg_monthly * stats.months_with_data == pytest.approx(
        total, abs=0.01 * stats.months_with_data
    )
    assert [m for m, _ in stats.monthly_totals] == sorted(months)


def test_recent_and_prior_slices_use_latest_months() -> None:
    months = {
        "2025-08": 100,
        "2025-09": 1_000,
        "2025-10": 1_000,
        "2025-11": 1_000,
        "2025-12": 3_000,
        "2026-01": 3_000,
        "2026-02": 3_000,
    }
    stats = summarize_category(4, "Fuel", months)
    assert stats.recent_3_avg == 30
    # The seventh month falls outside both slices.
    assert stats.prior_3_avg == 10
