import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


@dataclass(frozen=True)
class MonthPeriod:
    year: int
    month: int
    start: date
    end: date

    @property
    def slug(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def add_months(year: int, month: int, count: int) -> tuple[int, int]:
    month_index = (year * 12) + (month - 1) + count
    return month_index // 12, (month_index % 12) + 1


def month_period(year: int, month: int) -> MonthPeriod:
    first = date(year, month, 1)
    next_year, next_month = add_months(year, month, 1)
    end = date(next_year, next_month, 1) - date.resolution
    return MonthPeriod(year, month, first, end)


def parse_month(value: Optional[str]) -> Optional[tuple[int, int]]:
    if not value or not MONTH_PATTERN.match(value):
        return None
    year_str, month_str = value.split("-", 1)
    year, month = int(year_str), int(month_str)
    if not 1 <= month <= 12 or year < 1:
        return None
    return year, month


def resolve_target_month(value: Optional[str], *, today: date) -> MonthPeriod:
    """Return the requested month, or the month of ``today`` when the value
    is missing or not a valid ``YYYY-MM`` string."""
    parsed = parse_month(value)
    if parsed is None:
        return month_period(today.year, today.month)
    return month_period(*parsed)


def next_month_period(period: MonthPeriod) -> MonthPeriod:
    return month_period(*add_months(period.year, period.month, 1))


def trailing_window_start(today: date, months: int) -> date:
    # `months` calendar months including the current one.
    year, month = add_months(today.year, today.month, -(months - 1))
    return date(year, month, 1)
