from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from config import get_settings
from models import Cadence
from periods import MonthPeriod

MONTHLY_MULTIPLIERS: dict[Cadence, float] = {
    Cadence.weekly: 4.33,
    Cadence.biweekly: 2.17,
    Cadence.monthly: 1.0,
    Cadence.quarterly: 1 / 3,
    Cadence.annually: 1 / 12,
}

INTERVAL_DAYS: dict[Cadence, int] = {
    Cadence.weekly: 7,
    Cadence.biweekly: 14,
    Cadence.quarterly: 91,
    Cadence.annually: 365,
}


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def add_months(base: date, months: int, *, desired_day: int) -> date:
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1
    return date(year, month, min(desired_day, days_in_month(year, month)))


def monthly_equivalent(amount: float, cadence: Cadence) -> float:
    return amount * MONTHLY_MULTIPLIERS[cadence]


@dataclass(frozen=True)
class ScheduledPayment:
    category_id: Optional[int]
    amount_cents: int
    cadence: Cadence
    start_date: date
    end_date: Optional[date] = None


@dataclass(frozen=True)
class RecurringSchedule:
    monthly_equivalent_by_category: dict[int, float] = field(default_factory=dict)
    upcoming_by_category: dict[int, float] = field(default_factory=dict)
    committed_category_ids: frozenset[int] = frozenset()

    def has_commitment(self, category_id: int) -> bool:
        return category_id in self.committed_category_ids


def occurrences_in_window(
    start_date: date,
    cadence: Cadence,
    window_start: date,
    window_end: date,
    end_date: Optional[date] = None,
) -> list[date]:
    last = window_end if end_date is None else min(window_end, end_date)
    first = max(window_start, start_date)
    if first > last:
        return []

    dates: list[date] = []
    if cadence == Cadence.monthly:
        # Stays on the start day; clamped in short months.
        step = (first.year - start_date.year) * 12 + (first.month - start_date.month)
        step = max(step - 1, 0)
        current = add_months(start_date, step, desired_day=start_date.day)
        while current <= last:
            if current >= first:
                dates.append(current)
            step += 1
            current = add_months(start_date, step, desired_day=start_date.day)
        return dates

    interval = INTERVAL_DAYS[cadence]
    skipped = (first - start_date).days // interval
    current = start_date + timedelta(days=skipped * interval)
    while current <= last:
        if current >= first:
            dates.append(current)
        current += timedelta(days=interval)
    return dates


def projection_window(target: MonthPeriod, today: date) -> tuple[date, date]:
    # Occurrences already behind us this month are not upcoming.
    if target.contains(today):
        return today, target.end
    return target.start, target.end


def resolve_schedule(
    payments: Iterable[ScheduledPayment], window_start: date, window_end: date
) -> RecurringSchedule:
    monthly: dict[int, float] = {}
    upcoming: dict[int, float] = {}
    committed: set[int] = set()
    for payment in payments:
        if payment.category_id is None:
            continue
        category_id = payment.category_id
        amount = payment.amount_cents / 100
        committed.add(category_id)
        monthly[category_id] = monthly.get(category_id, 0.0) + monthly_equivalent(
            amount, payment.cadence
        )
        due_dates = occurrences_in_window(
            payment.start_date,
            payment.cadence,
            window_start,
            window_end,
            payment.end_date,
        )
        if due_dates and amount > 0:
            upcoming[category_id] = upcoming.get(category_id, 0.0) + len(
                due_dates
            ) * amount
    return RecurringSchedule(
        monthly_equivalent_by_category=monthly,
        upcoming_by_category=upcoming,
        committed_category_ids=frozenset(committed),
    )
