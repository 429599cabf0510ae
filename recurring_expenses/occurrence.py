from __future__ import annotations

from calendar import monthrange
from datetime import MAXYEAR, date, timedelta
from typing import Callable, Dict, Iterator, List

from recurring_expenses.recurrence_config import (
    DAILY,
    MONTHLY,
    WEEKLY,
    YEARLY,
    RecurrenceConfig,
    RecurringExpense,
    parse_calendar_date,
)

WEEKLY_DAYS = 7
LOOKAHEAD_YEARS = 2


def should_occur_on_date(expense: RecurringExpense, day: date | str) -> bool:
    target = parse_calendar_date(day)
    if target is None:
        return False
    return occurs_on(expense.recurrence, target)


def occurs_on(config: RecurrenceConfig, day: date) -> bool:
    if day < config.start_date:
        return False
    if config.end_date is not None and day > config.end_date:
        return False
    rule = _PATTERN_RULES.get(config.pattern)
    if rule is None:
        return False
    return rule(config, day, max(config.interval, 1))


def next_occurrence(expense: RecurringExpense, from_date: date | str) -> date | None:
    """First occurrence strictly after ``from_date``, within the lookahead.

    Before the anchor date the anchor itself is returned only when it fires;
    otherwise the search starts at the anchor.
    """
    config = expense.recurrence
    if not config.is_active:
        return None
    origin = parse_calendar_date(from_date)
    if origin is None:
        return None

    if origin < config.start_date:
        return _scan(config, config.start_date, _add_years(config.start_date, LOOKAHEAD_YEARS))

    if config.end_date is not None and origin >= config.end_date:
        return None
    if origin == date.max:
        return None

    return _scan(config, origin + timedelta(days=1), _add_years(origin, LOOKAHEAD_YEARS))


def occurrences_in_range(
    expense: RecurringExpense, range_start: date | str, range_end: date | str
) -> List[date]:
    start = parse_calendar_date(range_start)
    end = parse_calendar_date(range_end)
    if start is None or end is None:
        return []
    config = expense.recurrence
    first = max(start, config.start_date)
    last = min(end, config.end_date) if config.end_date is not None else end
    return [day for day in iter_days(first, last) if occurs_on(config, day)]


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        if current == date.max:
            return
        current += timedelta(days=1)


def sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % 7


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def _scan(config: RecurrenceConfig, first: date, horizon: date) -> date | None:
    for day in iter_days(first, horizon):
        if occurs_on(config, day):
            return day
    return None


def _occurs_daily(config: RecurrenceConfig, day: date, interval: int) -> bool:
    return (day - config.start_date).days % interval == 0


def _occurs_weekly(config: RecurrenceConfig, day: date, interval: int) -> bool:
    week_days = config.pattern_config.week_days
    if week_days and sunday_based_weekday(day) not in week_days:
        return False
    weeks = (day - config.start_date).days // WEEKLY_DAYS
    return weeks % interval == 0


def _occurs_monthly(config: RecurrenceConfig, day: date, interval: int) -> bool:
    # without explicit days the anchor's day of month is used, never clamped
    month_days = config.pattern_config.month_days or frozenset((config.start_date.day,))
    if day.day not in month_days:
        return False
    months = months_between(config.start_date, day)
    return months >= 0 and months % interval == 0


def _occurs_yearly(config: RecurrenceConfig, day: date, interval: int) -> bool:
    year_config = config.pattern_config.year_config
    target_month = year_config.month if year_config else config.start_date.month
    target_day = year_config.day if year_config else config.start_date.day
    if day.month != target_month or day.day != target_day:
        return False
    years = day.year - config.start_date.year
    return years >= 0 and years % interval == 0


_PATTERN_RULES: Dict[str, Callable[[RecurrenceConfig, date, int], bool]] = {
    DAILY: _occurs_daily,
    WEEKLY: _occurs_weekly,
    MONTHLY: _occurs_monthly,
    YEARLY: _occurs_yearly,
}


def _add_years(start_date: date, years: int) -> date:
    if start_date.year + years > MAXYEAR:
        return date.max
    return _add_months(start_date, years * 12, start_date.day)


def _add_months(start_date: date, months: int, anchor_day: int) -> date:
    total_month = start_date.month - 1 + months
    year = start_date.year + total_month // 12
    month = total_month % 12 + 1
    last_day = monthrange(year, month)[1]
    day = min(anchor_day, last_day)
    return date(year, month, day)
