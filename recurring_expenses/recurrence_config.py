from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
SUPPORTED_PATTERNS = (DAILY, WEEKLY, MONTHLY, YEARLY)

DEFAULT_PATTERN = MONTHLY
DEFAULT_INTERVAL = 1

# token -> (pattern, interval multiplier)
FREQUENCY_ALIASES: dict[str, tuple[str, int]] = {
    "daily": (DAILY, 1),
    "diario": (DAILY, 1),
    "diaria": (DAILY, 1),
    "weekly": (WEEKLY, 1),
    "semanal": (WEEKLY, 1),
    "biweekly": (WEEKLY, 2),
    "fortnightly": (WEEKLY, 2),
    "bisemanal": (WEEKLY, 2),
    "quincenal": (WEEKLY, 2),
    "monthly": (MONTHLY, 1),
    "mensual": (MONTHLY, 1),
    "quarterly": (MONTHLY, 3),
    "trimestral": (MONTHLY, 3),
    "biannual": (MONTHLY, 6),
    "semiannual": (MONTHLY, 6),
    "semestral": (MONTHLY, 6),
    "yearly": (YEARLY, 1),
    "annual": (YEARLY, 1),
    "annually": (YEARLY, 1),
    "anual": (YEARLY, 1),
}

SHAPE_CANONICAL = "recurrence"
SHAPE_LEGACY = "recurringConfig"
SHAPE_FLAT = "flat"

# Ordered by precedence; the first key holding a mapping wins.
SHAPE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (SHAPE_CANONICAL, ("pattern", "frequency")),
    (SHAPE_LEGACY, ("frequency", "pattern")),
)
FLAT_FREQUENCY_KEYS = ("frequency", "pattern")

# integers with more digits than this are treated as invalid
MAX_INT_DIGITS = 18

_MONTH_KEY = re.compile(r"^\d{4}-\d{2}$")
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


@dataclass(frozen=True)
class YearConfig:
    month: int
    day: int


@dataclass(frozen=True)
class PatternConfig:
    week_days: FrozenSet[int] = frozenset()
    month_days: FrozenSet[int] = frozenset()
    year_config: YearConfig | None = None


@dataclass(frozen=True)
class RecurrenceConfig:
    start_date: date
    pattern: str = DEFAULT_PATTERN
    interval: int = DEFAULT_INTERVAL
    end_date: date | None = None
    is_active: bool = True
    daily_adjustments: Mapping[str, Decimal] = field(default_factory=dict)
    adjustments_month: str | None = None
    last_processed: date | None = None
    pattern_config: PatternConfig = field(default_factory=PatternConfig)


@dataclass(frozen=True)
class NormalizationResult:
    config: RecurrenceConfig
    warnings: Tuple[str, ...] = ()
    shape: str = SHAPE_FLAT


@dataclass(frozen=True)
class RecurringExpense:
    """A recurring obligation ready for calculation.

    ``warnings`` lists every degradation applied while reading the raw record.
    """

    amount: Decimal
    recurrence: RecurrenceConfig
    description: str | None = None
    warnings: Tuple[str, ...] = ()


def normalize_recurrence(record: Any, today: date) -> NormalizationResult:
    """Read any of the three stored recurrence shapes into one canonical config.

    ``today`` stands in for a missing start date. Malformed values never raise;
    each fallback is reported in ``warnings``.
    """
    if not isinstance(record, Mapping):
        return NormalizationResult(
            config=RecurrenceConfig(start_date=today, is_active=False),
            warnings=("No recurrence data; using an inactive monthly default.",),
        )

    warnings: List[str] = []
    shape, source = select_recurrence_source(record)
    frequency_keys = _frequency_keys(shape)

    raw_frequency = _first_present(source, frequency_keys)
    if raw_frequency is None:
        raw_frequency = _first_present(record, FLAT_FREQUENCY_KEYS)
    pattern, multiplier = _resolve_pattern(raw_frequency, warnings)
    interval = _resolve_interval(_lookup(source, record, "interval"), warnings) * multiplier

    start_date = _resolve_date(_lookup(source, record, "startDate"), "start date", warnings)
    if start_date is None:
        start_date = _resolve_date(record.get("date"), "expense date", warnings)
    if start_date is None:
        start_date = today
    end_date = _resolve_date(_lookup(source, record, "endDate"), "end date", warnings)
    last_processed = _resolve_date(
        _lookup(source, record, "lastProcessed"), "last processed date", warnings
    )

    adjustments_month = _resolve_adjustments_month(
        _lookup(source, record, "adjustmentsMonth"), warnings
    )
    daily_adjustments = _resolve_daily_adjustments(
        _lookup(source, record, "dailyAdjustments"), adjustments_month, warnings
    )

    config = RecurrenceConfig(
        pattern=pattern,
        interval=interval,
        start_date=start_date,
        end_date=end_date,
        is_active=_coerce_bool(_lookup(source, record, "isActive"), default=True),
        daily_adjustments=daily_adjustments,
        adjustments_month=adjustments_month,
        last_processed=last_processed,
        pattern_config=_extract_pattern_config(pattern, source, start_date, warnings),
    )
    return NormalizationResult(config=config, warnings=tuple(warnings), shape=shape)


def load_recurring_expense(record: Any, today: date) -> RecurringExpense:
    result = normalize_recurrence(record, today)
    warnings = list(result.warnings)
    description = None
    amount = None
    if isinstance(record, Mapping):
        description = record.get("description") or record.get("name")
        amount = _coerce_decimal(record.get("amount"))
        if amount is None:
            warnings.append(f"Invalid or missing amount {record.get('amount')!r}; using 0.")
    return RecurringExpense(
        amount=amount if amount is not None else Decimal("0"),
        recurrence=result.config,
        description=str(description).strip() if description else None,
        warnings=tuple(warnings),
    )


def select_recurrence_source(record: Mapping[str, Any]) -> tuple[str, Mapping[str, Any]]:
    for shape, _ in SHAPE_RULES:
        candidate = record.get(shape)
        if isinstance(candidate, Mapping):
            return shape, candidate
    return SHAPE_FLAT, record


def normalize_frequency(value: Any) -> tuple[str, int] | None:
    """Map a stored frequency token to ``(pattern, interval multiplier)``."""
    if not isinstance(value, str):
        return None
    token = "".join(ch for ch in value.strip().lower() if ch.isalnum())
    if token == "byweekly":
        token = "biweekly"
    return FREQUENCY_ALIASES.get(token)


def parse_calendar_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()[:10]
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def to_legacy_recurring_config(config: RecurrenceConfig) -> Dict[str, Any]:
    legacy: Dict[str, Any] = {
        "frequency": config.pattern,
        "interval": config.interval,
        "startDate": config.start_date.isoformat(),
        "endDate": config.end_date.isoformat() if config.end_date else None,
        "isActive": config.is_active,
    }
    week_days = sorted(config.pattern_config.week_days)
    month_days = sorted(config.pattern_config.month_days)
    if config.pattern == WEEKLY and week_days:
        legacy["dayOfWeek"] = week_days[0]
    elif config.pattern == MONTHLY and len(month_days) == 1:
        legacy["dayOfMonth"] = month_days[0]
    elif config.pattern == MONTHLY and month_days:
        legacy["specificDates"] = month_days
    if config.daily_adjustments:
        legacy["dailyAdjustments"] = dict(config.daily_adjustments)
        legacy["adjustmentsMonth"] = config.adjustments_month
    if config.last_processed:
        legacy["lastProcessed"] = config.last_processed.isoformat()
    return legacy


def _frequency_keys(shape: str) -> tuple[str, ...]:
    for rule_shape, keys in SHAPE_RULES:
        if rule_shape == shape:
            return keys
    return FLAT_FREQUENCY_KEYS


def _first_present(source: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


def _lookup(source: Mapping[str, Any], record: Mapping[str, Any], key: str) -> Any:
    value = source.get(key)
    if value is None and source is not record:
        value = record.get(key)
    return value


def _pattern_section(source: Mapping[str, Any]) -> Mapping[str, Any]:
    for key in ("config", "patternConfig"):
        section = source.get(key)
        if isinstance(section, Mapping):
            return section
    return {}


def _resolve_pattern(raw: Any, warnings: List[str]) -> tuple[str, int]:
    if raw is None:
        return DEFAULT_PATTERN, 1
    resolved = normalize_frequency(raw)
    if resolved is None:
        warnings.append(f"Unrecognized frequency {raw!r}; falling back to {DEFAULT_PATTERN}.")
        return DEFAULT_PATTERN, 1
    return resolved


def _resolve_interval(raw: Any, warnings: List[str]) -> int:
    if raw is None:
        return DEFAULT_INTERVAL
    interval = _coerce_int(raw)
    if interval is None or interval < 1:
        warnings.append(f"Invalid interval {raw!r}; using {DEFAULT_INTERVAL}.")
        return DEFAULT_INTERVAL
    return interval


def _resolve_date(raw: Any, label: str, warnings: List[str]) -> date | None:
    if raw is None or raw == "":
        return None
    parsed = parse_calendar_date(raw)
    if parsed is None:
        warnings.append(f"Unparseable {label} {raw!r}; ignoring it.")
    return parsed


def _resolve_adjustments_month(raw: Any, warnings: List[str]) -> str | None:
    if raw is None or raw == "":
        return None
    text = str(raw).strip()
    if not _MONTH_KEY.match(text):
        warnings.append(f"Invalid adjustments month {raw!r}; adjustments are not scoped.")
        return None
    return text


def _resolve_daily_adjustments(
    raw: Any, adjustments_month: str | None, warnings: List[str]
) -> Dict[str, Decimal]:
    if not isinstance(raw, Mapping):
        return {}
    adjustments: Dict[str, Decimal] = {}
    for key, value in raw.items():
        day = parse_calendar_date(key)
        if day is None:
            warnings.append(f"Ignoring adjustment with invalid date {key!r}.")
            continue
        day_key = day.isoformat()
        if adjustments_month and not day_key.startswith(adjustments_month):
            warnings.append(
                f"Ignoring adjustment for {day_key} outside adjustments month {adjustments_month}."
            )
            continue
        amount = _coerce_decimal(value)
        if amount is None:
            warnings.append(f"Ignoring non-numeric adjustment {value!r} for {day_key}.")
            continue
        adjustments[day_key] = amount
    return adjustments


def _extract_pattern_config(
    pattern: str,
    source: Mapping[str, Any],
    start_date: date,
    warnings: List[str],
) -> PatternConfig:
    section = _pattern_section(source)

    if pattern == WEEKLY:
        explicit = section.get("weekDays", source.get("weekDays"))
        if explicit is None and source.get("dayOfWeek") is not None:
            explicit = [source.get("dayOfWeek")]
        return PatternConfig(week_days=_int_set(explicit, 0, 6, "weekday", warnings))

    if pattern == MONTHLY:
        explicit = section.get("monthDays", source.get("monthDays"))
        if explicit is None:
            explicit = source.get("specificDates") or None
        if explicit is None and source.get("dayOfMonth") is not None:
            explicit = [source.get("dayOfMonth")]
        return PatternConfig(month_days=_int_set(explicit, 1, 31, "month day", warnings))

    if pattern == YEARLY:
        explicit = section.get("yearConfig", source.get("yearConfig"))
        year_config = _year_config(explicit, warnings)
        if year_config is None:
            year_config = YearConfig(month=start_date.month, day=start_date.day)
        return PatternConfig(year_config=year_config)

    return PatternConfig()


def _int_set(
    raw: Any, lowest: int, highest: int, label: str, warnings: List[str]
) -> FrozenSet[int]:
    if raw is None:
        return frozenset()
    if isinstance(raw, (str, bytes)) or not hasattr(raw, "__iter__"):
        raw = [raw]
    values = set()
    for item in raw:
        number = _coerce_int(item)
        if number is None or not lowest <= number <= highest:
            warnings.append(f"Ignoring invalid {label} {item!r}.")
            continue
        values.add(number)
    return frozenset(values)


def _year_config(raw: Any, warnings: List[str]) -> YearConfig | None:
    if not isinstance(raw, Mapping):
        return None
    month = _coerce_int(raw.get("month"))
    day = _coerce_int(raw.get("day"))
    if month is None or day is None or not 1 <= month <= 12 or not 1 <= day <= 31:
        warnings.append(f"Invalid yearly configuration {dict(raw)!r}; using the start date.")
        return None
    return YearConfig(month=month, day=day)


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite() or number.adjusted() > MAX_INT_DIGITS:
        return None
    return int(number)


def _coerce_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    if not amount.is_finite():
        return None
    return amount


def _coerce_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)
