from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Sequence

from recurring_expenses.recurrence_config import (
    DAILY,
    MONTHLY,
    WEEKLY,
    YEARLY,
    RecurrenceConfig,
    RecurringExpense,
)

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

_UNITS = {
    DAILY: ("day", "days"),
    WEEKLY: ("week", "weeks"),
    MONTHLY: ("month", "months"),
    YEARLY: ("year", "years"),
}


@dataclass(frozen=True)
class ExpenseSummary:
    name: str
    amount: str
    frequency: str
    status: str
    date_range: str
    description: str


def describe_recurrence(config: RecurrenceConfig) -> str:
    """Render a config as a phrase such as "every 2 weeks on Monday and Friday"."""
    units = _UNITS.get(config.pattern)
    if units is None:
        return config.pattern
    singular, plural = units
    interval = max(config.interval, 1)
    phrase = f"every {singular}" if interval == 1 else f"every {interval} {plural}"

    detail = ""
    if config.pattern == WEEKLY:
        detail = _format_week_days(config.pattern_config.week_days)
    elif config.pattern == MONTHLY:
        detail = _format_month_days(
            config.pattern_config.month_days or (config.start_date.day,)
        )
    elif config.pattern == YEARLY and config.pattern_config.year_config is not None:
        year_config = config.pattern_config.year_config
        detail = f"{calendar.month_name[year_config.month]} {year_config.day}"
    return f"{phrase} on {detail}" if detail else phrase


def format_amount(
    amount: Decimal | int | float | str | None, currency: str = "$", decimals: int = 2
) -> str:
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation:
        value = Decimal("0")
    if not value.is_finite():
        value = Decimal("0")
    return f"{currency}{value:,.{decimals}f}"


def format_date_range(start_date: date | None, end_date: date | None) -> str:
    if start_date is None:
        return "No dates"
    if end_date is None:
        return f"From {start_date.isoformat()}"
    return f"{start_date.isoformat()} - {end_date.isoformat()}"


def format_status(config: RecurrenceConfig, today: date) -> str:
    if not config.is_active:
        return "Inactive"
    if config.end_date is not None:
        if config.end_date < today:
            return "Ended"
        return f"Active until {config.end_date.isoformat()}"
    return "Active"


def summarize_expense(
    expense: RecurringExpense, today: date, currency: str = "$"
) -> ExpenseSummary:
    config = expense.recurrence
    amount = format_amount(expense.amount, currency)
    frequency = describe_recurrence(config)
    return ExpenseSummary(
        name=expense.description or "Unnamed expense",
        amount=amount,
        frequency=frequency,
        status=format_status(config, today),
        date_range=format_date_range(config.start_date, config.end_date),
        description=f"{amount} {frequency}",
    )


def _format_week_days(week_days: Iterable[int]) -> str:
    days = sorted(week_days)
    # every weekday selected adds nothing to the interval phrase
    if not days or len(days) == len(WEEKDAY_NAMES):
        return ""
    return _join_words([WEEKDAY_NAMES[day] for day in days])


def _format_month_days(month_days: Iterable[int]) -> str:
    days = sorted(month_days)
    if not days:
        return ""
    label = "day" if len(days) == 1 else "days"
    return f"{label} {_join_words([str(day) for day in days])}"


def _join_words(words: Sequence[str]) -> str:
    if len(words) == 1:
        return words[0]
    return f"{', '.join(words[:-1])} and {words[-1]}"
