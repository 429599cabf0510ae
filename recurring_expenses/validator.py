from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping

from recurring_expenses.recurrence_config import (
    MAX_INT_DIGITS,
    MONTHLY,
    SUPPORTED_PATTERNS,
    WEEKLY,
    YEARLY,
    normalize_frequency,
    parse_calendar_date,
    select_recurrence_source,
)

MAX_INTERVAL = 365
MAX_AMOUNT = Decimal("1000000")

_DATE_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors: Iterable[str]) -> "ValidationResult":
        collected = tuple(errors)
        return cls(is_valid=not collected, errors=collected)


def validate_recurring_expense(record: Any) -> ValidationResult:
    """Check a stored expense record before it is saved.

    Advisory only: the calculators accept records that fail validation.
    """
    if not isinstance(record, Mapping):
        return ValidationResult.from_errors(["Expense record is required."])
    _, source = select_recurrence_source(record)
    errors: List[str] = []
    errors.extend(validate_recurrence_config(source).errors)
    errors.extend(validate_amount(record.get("amount")).errors)
    adjustments = source.get("dailyAdjustments", record.get("dailyAdjustments"))
    errors.extend(validate_daily_adjustments(adjustments).errors)
    return ValidationResult.from_errors(errors)


def validate_recurrence_config(config: Any) -> ValidationResult:
    if not isinstance(config, Mapping):
        return ValidationResult.from_errors(["Recurrence configuration is required."])

    raw_pattern = config.get("pattern") or config.get("frequency")
    errors = _pattern_errors(raw_pattern)
    errors.extend(_interval_errors(config.get("interval")))
    errors.extend(_date_errors(config.get("startDate"), config.get("endDate")))

    resolved = normalize_frequency(raw_pattern)
    if resolved is not None:
        errors.extend(_pattern_config_errors(resolved[0], config))
    return ValidationResult.from_errors(errors)


def validate_amount(amount: Any) -> ValidationResult:
    if amount is None or amount == "":
        return ValidationResult.from_errors(["Amount is required."])
    value = _as_decimal(amount)
    if value is None:
        return ValidationResult.from_errors(["Amount must be a valid number."])
    if value <= 0:
        return ValidationResult.from_errors(["Amount must be greater than 0."])
    if value > MAX_AMOUNT:
        return ValidationResult.from_errors(["Amount cannot exceed 1,000,000."])
    return ValidationResult.from_errors([])


def validate_daily_adjustments(adjustments: Any) -> ValidationResult:
    if not isinstance(adjustments, Mapping):
        return ValidationResult.from_errors([])
    errors: List[str] = []
    for key, value in adjustments.items():
        if not isinstance(key, str) or not _DATE_KEY.match(key):
            errors.append(f"Invalid adjustment date format: {key}. Expected YYYY-MM-DD.")
            continue
        if parse_calendar_date(key) is None:
            errors.append(f"Invalid adjustment date: {key}.")
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            errors.append(f"Adjustment for {key} must be a number.")
        elif _as_decimal(value) is None:
            errors.append(f"Adjustment for {key} must be a number.")
    return ValidationResult.from_errors(errors)


def _pattern_errors(pattern: Any) -> List[str]:
    if not pattern:
        return ["Frequency pattern is required."]
    if normalize_frequency(pattern) is None:
        return [
            f"Invalid frequency pattern: {pattern}. "
            f"Expected one of: {', '.join(SUPPORTED_PATTERNS)}."
        ]
    return []


def _interval_errors(interval: Any) -> List[str]:
    if interval is None:
        return ["Interval is required."]
    value = _as_int(interval)
    if value is None or value < 1:
        return ["Interval must be a whole number greater than 0."]
    if value > MAX_INTERVAL:
        return [f"Interval cannot be greater than {MAX_INTERVAL}."]
    return []


def _date_errors(start_value: Any, end_value: Any) -> List[str]:
    errors: List[str] = []
    start = parse_calendar_date(start_value)
    if not start_value:
        errors.append("Start date is required.")
    elif start is None:
        errors.append("Start date is not a valid date.")

    if end_value:
        end = parse_calendar_date(end_value)
        if end is None:
            errors.append("End date is not a valid date.")
        elif start is not None and end <= start:
            errors.append("End date must be after the start date.")
    return errors


def _pattern_config_errors(pattern: str, config: Mapping[str, Any]) -> List[str]:
    section = config.get("config") or config.get("patternConfig") or {}
    if not isinstance(section, Mapping):
        return ["Pattern configuration must be an object."]

    if pattern == WEEKLY:
        week_days = section.get("weekDays", config.get("weekDays"))
        if week_days is None and config.get("dayOfWeek") is not None:
            week_days = [config.get("dayOfWeek")]
        return _day_list_errors(week_days, 0, 6, "weekDays", "Weekdays")

    if pattern == MONTHLY:
        month_days = section.get("monthDays", config.get("monthDays"))
        if month_days is None:
            month_days = config.get("specificDates")
        if month_days is None and config.get("dayOfMonth") is not None:
            month_days = [config.get("dayOfMonth")]
        return _day_list_errors(month_days, 1, 31, "monthDays", "Month days")

    if pattern == YEARLY:
        year_config = section.get("yearConfig", config.get("yearConfig"))
        if year_config is None:
            return []
        if not isinstance(year_config, Mapping):
            return ["yearConfig must be an object."]
        errors: List[str] = []
        month = year_config.get("month")
        day = year_config.get("day")
        if month is not None and not _in_range(month, 1, 12):
            errors.append(f"Invalid month: {month}. Expected 1-12.")
        if day is not None and not _in_range(day, 1, 31):
            errors.append(f"Invalid day: {day}. Expected 1-31.")
        return errors

    return []


def _day_list_errors(
    values: Any, lowest: int, highest: int, field_name: str, label: str
) -> List[str]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple, set, frozenset)):
        return [f"{field_name} must be a list."]
    invalid = [str(value) for value in values if not _in_range(value, lowest, highest)]
    if invalid:
        return [f"{label} out of range: {', '.join(invalid)}. Expected {lowest}-{highest}."]
    return []


def _in_range(value: Any, lowest: int, highest: int) -> bool:
    number = _as_int(value)
    return number is not None and lowest <= number <= highest


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = _as_decimal(value)
    if number is None or number.adjusted() > MAX_INT_DIGITS:
        return None
    if number != number.to_integral_value():
        return None
    return int(number)


def _as_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number
