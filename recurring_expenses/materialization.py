from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Set

from recurring_expenses.occurrence import iter_days, occurs_on
from recurring_expenses.recurrence_config import RecurringExpense, parse_calendar_date

logger = logging.getLogger(__name__)

MAX_OCCURRENCES = 100


@dataclass(frozen=True)
class MaterializedEntry:
    occurs_on: date
    amount: Decimal
    description: str | None = None
    source: str = "recurring-instance"


@dataclass(frozen=True)
class MaterializationPlan:
    """Ledger entries a recurring template owes up to a processing date.

    ``last_processed`` is the value the caller should store back on the
    template once the entries are persisted.
    """

    entries: tuple[MaterializedEntry, ...]
    skipped: tuple[date, ...]
    last_processed: date | None

    @property
    def created(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class MaterializationRun:
    plans: Mapping[str, MaterializationPlan]
    processed: int
    created: int
    skipped: int


def plan_materialization(
    template: RecurringExpense,
    process_date: date,
    existing_dates: Iterable[date | str] = (),
) -> MaterializationPlan:
    config = template.recurrence
    if not config.is_active:
        return MaterializationPlan(entries=(), skipped=(), last_processed=config.last_processed)

    if config.last_processed == date.max:
        return MaterializationPlan(entries=(), skipped=(), last_processed=config.last_processed)
    if config.last_processed is not None:
        first = config.last_processed + timedelta(days=1)
    else:
        first = config.start_date

    due_dates: List[date] = []
    for day in iter_days(first, process_date):
        if not occurs_on(config, day):
            continue
        due_dates.append(day)
        if len(due_dates) >= MAX_OCCURRENCES:
            logger.warning(
                "Stopped materializing %s after %s occurrences.",
                template.description or "recurring expense",
                MAX_OCCURRENCES,
            )
            break

    excluded = _collect_existing_dates(existing_dates)
    entries = tuple(
        MaterializedEntry(
            occurs_on=day,
            amount=template.amount,
            description=template.description,
        )
        for day in due_dates
        if day not in excluded
    )
    skipped = tuple(day for day in due_dates if day in excluded)
    return MaterializationPlan(
        entries=entries,
        skipped=skipped,
        last_processed=due_dates[-1] if due_dates else config.last_processed,
    )


def plan_materializations(
    templates: Mapping[str, RecurringExpense],
    process_date: date,
    existing_dates: Mapping[str, Iterable[date | str]] | None = None,
) -> MaterializationRun:
    existing_dates = existing_dates or {}
    logger.info(
        "Planning recurring expense materialization for %s templates up to %s",
        len(templates),
        process_date.isoformat(),
    )
    plans: Dict[str, MaterializationPlan] = {}
    for template_id, template in templates.items():
        plan = plan_materialization(template, process_date, existing_dates.get(template_id, ()))
        plans[template_id] = plan
        if plan.entries or plan.skipped:
            logger.info(
                "Template %s: %s entries due, %s already recorded",
                template_id,
                plan.created,
                len(plan.skipped),
            )

    run = MaterializationRun(
        plans=plans,
        processed=len(plans),
        created=sum(plan.created for plan in plans.values()),
        skipped=sum(len(plan.skipped) for plan in plans.values()),
    )
    logger.info(
        "Materialization planned: %s processed, %s created, %s skipped",
        run.processed,
        run.created,
        run.skipped,
    )
    return run


def _collect_existing_dates(existing_dates: Iterable[date | str]) -> Set[date]:
    collected: Set[date] = set()
    for value in existing_dates:
        parsed = parse_calendar_date(value)
        if parsed is not None:
            collected.add(parsed)
    return collected
