from __future__ import annotations

from dataclasses import dataclass
from calendar import monthrange
from datetime import date
from decimal import Decimal
from typing import Iterable, List

from recurring_expenses.amount_calculator import ZERO, daily_adjusted_amount
from recurring_expenses.occurrence import iter_days, occurrences_in_range, occurs_on
from recurring_expenses.recurrence_config import (
    RecurrenceConfig,
    RecurringExpense,
    parse_calendar_date,
)


@dataclass(frozen=True)
class MonthlyAmount:
    month: str
    start_date: date
    end_date: date
    amount: Decimal
    occurrences: int


@dataclass(frozen=True)
class ExpenseRangeTotal:
    description: str | None
    pattern: str
    is_active: bool
    amount: Decimal
    occurrences: int
    monthly: tuple[MonthlyAmount, ...] = ()


@dataclass(frozen=True)
class RecurringExpenseReport:
    start_date: date
    end_date: date
    entries: tuple[ExpenseRangeTotal, ...]
    total: Decimal


def range_amount(
    expense: RecurringExpense, start_date: date | str, end_date: date | str
) -> Decimal:
    range_start = parse_calendar_date(start_date)
    range_end = parse_calendar_date(end_date)
    if range_start is None or range_end is None or range_start > range_end:
        return ZERO
    config = expense.recurrence
    if not _is_active_in_range(config, range_start, range_end):
        return ZERO

    total = ZERO
    for day in iter_days(range_start, range_end):
        if occurs_on(config, day):
            total += daily_adjusted_amount(expense, day)
    return total


def monthly_breakdown(
    expense: RecurringExpense, start_date: date | str, end_date: date | str
) -> List[MonthlyAmount]:
    range_start = parse_calendar_date(start_date)
    range_end = parse_calendar_date(end_date)
    if range_start is None or range_end is None or range_start > range_end:
        return []

    active = _is_active_in_range(expense.recurrence, range_start, range_end)
    breakdown: List[MonthlyAmount] = []
    for month in iter_months(range_start, range_end):
        bucket_start = max(month, range_start)
        bucket_end = min(month_end(month), range_end)
        occurrences = (
            len(occurrences_in_range(expense, bucket_start, bucket_end)) if active else 0
        )
        breakdown.append(
            MonthlyAmount(
                month=month.strftime("%Y-%m"),
                start_date=bucket_start,
                end_date=bucket_end,
                amount=range_amount(expense, bucket_start, bucket_end),
                occurrences=occurrences,
            )
        )
    return breakdown


def summarize_recurring_expenses(
    expenses: Iterable[RecurringExpense],
    start_date: date,
    end_date: date,
) -> RecurringExpenseReport:
    if start_date > end_date:
        raise ValueError("start_date must be on or before end_date.")

    entries: List[ExpenseRangeTotal] = []
    total = ZERO
    for expense in expenses:
        monthly = tuple(monthly_breakdown(expense, start_date, end_date))
        amount = sum((bucket.amount for bucket in monthly), ZERO)
        entries.append(
            ExpenseRangeTotal(
                description=expense.description,
                pattern=expense.recurrence.pattern,
                is_active=expense.recurrence.is_active,
                amount=amount,
                occurrences=sum(bucket.occurrences for bucket in monthly),
                monthly=monthly,
            )
        )
        total += amount

    return RecurringExpenseReport(
        start_date=start_date,
        end_date=end_date,
        entries=tuple(entries),
        total=total,
    )


def month_start(value: date) -> date:
    return value.replace(day=1)


def shift_month(value: date, months: int) -> date:
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)


def month_end(value: date) -> date:
    return value.replace(day=monthrange(value.year, value.month)[1])


def iter_months(start_value: date, end_value: date) -> list[date]:
    months: list[date] = []
    cursor = month_start(start_value)
    end_month = month_start(end_value)
    while cursor <= end_month:
        months.append(cursor)
        if cursor == end_month:
            break
        cursor = shift_month(cursor, 1)
    return months


def _is_active_in_range(config: RecurrenceConfig, range_start: date, range_end: date) -> bool:
    if not config.is_active:
        return False
    if config.start_date > range_end:
        return False
    if config.end_date is not None and config.end_date < range_start:
        return False
    return True
