from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from recurring_expenses.recurrence_config import (
    DAILY,
    MONTHLY,
    WEEKLY,
    YEARLY,
    RecurringExpense,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
DAYS_IN_WEEK = Decimal("7")
DAYS_IN_MONTH = Decimal("30.44")
WEEKS_IN_MONTH = Decimal("4.33")
DAYS_IN_YEAR = Decimal("365.25")
MONTHS_IN_YEAR = Decimal("12")


def base_daily_amount(expense: RecurringExpense) -> Decimal:
    amount = _coerce_amount(expense.amount)
    pattern = expense.recurrence.pattern
    interval = _interval(expense)

    if pattern == DAILY:
        return amount / interval
    if pattern == WEEKLY:
        return (amount * DAYS_IN_WEEK) / (interval * DAYS_IN_MONTH)
    if pattern == MONTHLY:
        return amount / (interval * DAYS_IN_MONTH)
    if pattern == YEARLY:
        return amount / (interval * DAYS_IN_YEAR)

    logger.warning("Unrecognized recurrence pattern %r; treating it as monthly.", pattern)
    return amount / DAYS_IN_MONTH


def monthly_amount(expense: RecurringExpense) -> Decimal:
    amount = _coerce_amount(expense.amount)
    pattern = expense.recurrence.pattern
    interval = _interval(expense)

    if pattern == DAILY:
        return (amount * DAYS_IN_MONTH) / interval
    if pattern == WEEKLY:
        return (amount * WEEKS_IN_MONTH) / interval
    if pattern == MONTHLY:
        return amount / interval
    if pattern == YEARLY:
        return amount / (interval * MONTHS_IN_YEAR)

    logger.warning("Unrecognized recurrence pattern %r; treating it as monthly.", pattern)
    return amount


def daily_adjusted_amount(expense: RecurringExpense, day: date | str) -> Decimal:
    """Amount contributed on ``day``.

    A manual adjustment for that date replaces the base daily amount outright,
    including an adjustment of zero.
    """
    key = day.isoformat() if isinstance(day, date) else str(day).strip()
    adjustments = expense.recurrence.daily_adjustments
    if key in adjustments:
        return _coerce_amount(adjustments[key])
    return base_daily_amount(expense)


def _interval(expense: RecurringExpense) -> Decimal:
    return Decimal(max(expense.recurrence.interval, 1))


def _coerce_amount(amount: Decimal | int | float | str | None) -> Decimal:
    if amount is None:
        return ZERO
    if isinstance(amount, Decimal):
        return amount
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        return ZERO
