import logging
import os
from datetime import date
from decimal import Decimal
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from recurring_expenses.amount_calculator import base_daily_amount, monthly_amount
from recurring_expenses.formatter import summarize_expense
from recurring_expenses.materialization import plan_materialization
from recurring_expenses.occurrence import next_occurrence, occurrences_in_range
from recurring_expenses.range_aggregation import (
    ExpenseRangeTotal,
    range_amount,
    summarize_recurring_expenses,
)
from recurring_expenses.recurrence_config import (
    RecurrenceConfig,
    RecurringExpense,
    load_recurring_expense,
    to_legacy_recurring_config,
)
from recurring_expenses.validator import ValidationResult, validate_recurring_expense


def get_log_level() -> int:
    raw = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(raw)
    if isinstance(level, int):
        return level
    return logging.INFO


def get_max_range_days() -> int:
    raw = os.getenv("MAX_RANGE_DAYS", "1830")
    try:
        value = int(raw)
    except ValueError:
        return 1830
    return value if value > 0 else 1830


logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = get_max_range_days()
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")

app = FastAPI()

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ExpensePayload(BaseModel):
    expense: dict[str, Any]
    today: date | None = None


class RangePayload(BaseModel):
    expense: dict[str, Any]
    start_date: date
    end_date: date
    today: date | None = None


class ReportPayload(BaseModel):
    expenses: list[dict[str, Any]]
    start_date: date
    end_date: date
    today: date | None = None


class MaterializePayload(BaseModel):
    template: dict[str, Any]
    process_date: date | None = None
    existing_dates: list[date] = []


class RecurrenceConfigResponse(BaseModel):
    pattern: str
    interval: int
    start_date: date
    end_date: date | None = None
    is_active: bool
    week_days: list[int] = []
    month_days: list[int] = []
    year_month: int | None = None
    year_day: int | None = None
    daily_adjustments: dict[str, Decimal] = {}
    adjustments_month: str | None = None
    last_processed: date | None = None


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: list[str]


class ExpensePreviewResponse(BaseModel):
    config: RecurrenceConfigResponse
    warnings: list[str]
    validation: ValidationResponse
    name: str
    frequency: str
    status: str
    date_range: str
    description: str
    base_daily_amount: Decimal
    monthly_amount: Decimal
    next_occurrence: date | None = None
    legacy_config: dict[str, Any]


class RangeAmountResponse(BaseModel):
    start_date: date
    end_date: date
    amount: Decimal
    warnings: list[str]


class OccurrencesResponse(BaseModel):
    start_date: date
    end_date: date
    occurrences: list[date]
    warnings: list[str]


class MonthlyAmountResponse(BaseModel):
    month: str
    start_date: date
    end_date: date
    amount: Decimal
    occurrences: int


class ReportEntryResponse(BaseModel):
    description: str | None = None
    pattern: str
    is_active: bool
    amount: Decimal
    occurrences: int
    monthly: list[MonthlyAmountResponse]


class ReportResponse(BaseModel):
    start_date: date
    end_date: date
    total: Decimal
    entries: list[ReportEntryResponse]


class MaterializedEntryResponse(BaseModel):
    occurs_on: date
    amount: Decimal
    description: str | None = None
    source: str


class MaterializationResponse(BaseModel):
    created: int
    skipped: list[date]
    last_processed: date | None = None
    entries: list[MaterializedEntryResponse]


def resolve_today(value: date | None) -> date:
    return value or date.today()


def load_expense(record: dict[str, Any], today: date) -> RecurringExpense:
    expense = load_recurring_expense(record, today)
    for warning in expense.warnings:
        logger.warning("Recurring expense %s: %s", expense.description or "<unnamed>", warning)
    return expense


def check_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="Start date must be on or before end date.")
    if (end_date - start_date).days + 1 > MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Date range cannot exceed {MAX_RANGE_DAYS} days.",
        )


def config_response(config: RecurrenceConfig) -> RecurrenceConfigResponse:
    year_config = config.pattern_config.year_config
    return RecurrenceConfigResponse(
        pattern=config.pattern,
        interval=config.interval,
        start_date=config.start_date,
        end_date=config.end_date,
        is_active=config.is_active,
        week_days=sorted(config.pattern_config.week_days),
        month_days=sorted(config.pattern_config.month_days),
        year_month=year_config.month if year_config else None,
        year_day=year_config.day if year_config else None,
        daily_adjustments=dict(config.daily_adjustments),
        adjustments_month=config.adjustments_month,
        last_processed=config.last_processed,
    )


def validation_response(result: ValidationResult) -> ValidationResponse:
    return ValidationResponse(is_valid=result.is_valid, errors=list(result.errors))


def report_entry_response(entry: ExpenseRangeTotal) -> ReportEntryResponse:
    return ReportEntryResponse(
        description=entry.description,
        pattern=entry.pattern,
        is_active=entry.is_active,
        amount=entry.amount,
        occurrences=entry.occurrences,
        monthly=[
            MonthlyAmountResponse(
                month=bucket.month,
                start_date=bucket.start_date,
                end_date=bucket.end_date,
                amount=bucket.amount,
                occurrences=bucket.occurrences,
            )
            for bucket in entry.monthly
        ],
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/recurring-expenses/preview", response_model=ExpensePreviewResponse)
def preview_recurring_expense(payload: ExpensePayload) -> ExpensePreviewResponse:
    today = resolve_today(payload.today)
    expense = load_expense(payload.expense, today)
    summary = summarize_expense(expense, today, CURRENCY_SYMBOL)
    return ExpensePreviewResponse(
        config=config_response(expense.recurrence),
        warnings=list(expense.warnings),
        validation=validation_response(validate_recurring_expense(payload.expense)),
        name=summary.name,
        frequency=summary.frequency,
        status=summary.status,
        date_range=summary.date_range,
        description=summary.description,
        base_daily_amount=base_daily_amount(expense),
        monthly_amount=monthly_amount(expense),
        next_occurrence=next_occurrence(expense, today),
        legacy_config=to_legacy_recurring_config(expense.recurrence),
    )


@app.post("/recurring-expenses/validate", response_model=ValidationResponse)
def validate_expense(payload: ExpensePayload) -> ValidationResponse:
    return validation_response(validate_recurring_expense(payload.expense))


@app.post("/recurring-expenses/range-amount", response_model=RangeAmountResponse)
def recurring_range_amount(payload: RangePayload) -> RangeAmountResponse:
    check_range(payload.start_date, payload.end_date)
    expense = load_expense(payload.expense, resolve_today(payload.today))
    return RangeAmountResponse(
        start_date=payload.start_date,
        end_date=payload.end_date,
        amount=range_amount(expense, payload.start_date, payload.end_date),
        warnings=list(expense.warnings),
    )


@app.post("/recurring-expenses/occurrences", response_model=OccurrencesResponse)
def recurring_occurrences(payload: RangePayload) -> OccurrencesResponse:
    check_range(payload.start_date, payload.end_date)
    expense = load_expense(payload.expense, resolve_today(payload.today))
    return OccurrencesResponse(
        start_date=payload.start_date,
        end_date=payload.end_date,
        occurrences=occurrences_in_range(expense, payload.start_date, payload.end_date),
        warnings=list(expense.warnings),
    )


@app.post("/recurring-expenses/report", response_model=ReportResponse)
def recurring_expense_report(payload: ReportPayload) -> ReportResponse:
    check_range(payload.start_date, payload.end_date)
    today = resolve_today(payload.today)
    expenses = [load_expense(record, today) for record in payload.expenses]
    try:
        report = summarize_recurring_expenses(expenses, payload.start_date, payload.end_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ReportResponse(
        start_date=report.start_date,
        end_date=report.end_date,
        total=report.total,
        entries=[report_entry_response(entry) for entry in report.entries],
    )


@app.post("/recurring-expenses/materialize", response_model=MaterializationResponse)
def materialize_recurring_expense(payload: MaterializePayload) -> MaterializationResponse:
    process_date = resolve_today(payload.process_date)
    template = load_expense(payload.template, process_date)
    plan = plan_materialization(template, process_date, payload.existing_dates)
    logger.info(
        "Materialization preview for %s: %s due, %s already recorded",
        template.description or "<unnamed>",
        plan.created,
        len(plan.skipped),
    )
    return MaterializationResponse(
        created=plan.created,
        skipped=list(plan.skipped),
        last_processed=plan.last_processed,
        entries=[
            MaterializedEntryResponse(
                occurs_on=entry.occurs_on,
                amount=entry.amount,
                description=entry.description,
                source=entry.source,
            )
            for entry in plan.entries
        ],
    )
