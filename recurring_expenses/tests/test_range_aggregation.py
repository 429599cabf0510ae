import unittest
from datetime import date
from decimal import Decimal

from recurring_expenses.range_aggregation import (
    MonthlyAmount,
    monthly_breakdown,
    range_amount,
    summarize_recurring_expenses,
)
from recurring_expenses.recurrence_config import RecurringExpense, load_recurring_expense

TODAY = date(2024, 6, 1)


def make_expense(amount, pattern, start, interval=1, name=None, **extra) -> RecurringExpense:
    recurrence = {"pattern": pattern, "interval": interval, "startDate": start}
    recurrence.update(extra)
    return load_recurring_expense(
        {"amount": amount, "name": name, "recurrence": recurrence}, TODAY
    )


class RangeAggregationTests(unittest.TestCase):
    def test_range_before_start_is_zero(self) -> None:
        expense = make_expense(300000, "monthly", "2024-05-01")

        self.assertEqual(range_amount(expense, date(2024, 1, 1), date(2024, 4, 30)), Decimal("0"))

    def test_inactive_expense_contributes_nothing(self) -> None:
        expense = make_expense(10, "daily", "2024-01-01", isActive=False)

        self.assertEqual(range_amount(expense, date(2024, 1, 1), date(2024, 12, 31)), Decimal("0"))

    def test_inverted_range_is_zero(self) -> None:
        expense = make_expense(10, "daily", "2024-01-01")

        self.assertEqual(range_amount(expense, "2024-02-01", "2024-01-01"), Decimal("0"))

    def test_daily_expense_sums_each_day(self) -> None:
        expense = make_expense(10, "daily", "2024-01-01")

        self.assertEqual(range_amount(expense, "2024-01-01", "2024-01-10"), Decimal("100"))

    def test_range_stops_at_end_date(self) -> None:
        expense = make_expense(10, "daily", "2024-01-01", endDate="2024-01-05")

        self.assertEqual(range_amount(expense, date(2024, 1, 1), date(2024, 1, 31)), Decimal("50"))

    def test_adjustments_replace_base_amount_on_their_days(self) -> None:
        expense = make_expense(
            10,
            "daily",
            "2024-03-01",
            dailyAdjustments={"2024-03-10": 0, "2024-03-11": 25},
        )

        self.assertEqual(range_amount(expense, "2024-03-09", "2024-03-11"), Decimal("35"))

    def test_range_amount_is_additive(self) -> None:
        expense = make_expense(3044, "monthly", "2024-01-01", config={"monthDays": [1, 15]})

        whole = range_amount(expense, date(2024, 1, 1), date(2024, 3, 31))
        first = range_amount(expense, date(2024, 1, 1), date(2024, 2, 10))
        second = range_amount(expense, date(2024, 2, 11), date(2024, 3, 31))

        self.assertEqual(whole, Decimal("600"))
        self.assertEqual(first + second, whole)

    def test_monthly_breakdown_splits_range_by_month(self) -> None:
        expense = make_expense(10, "daily", "2024-01-01")

        breakdown = monthly_breakdown(expense, date(2024, 1, 30), date(2024, 2, 2))

        self.assertEqual(
            breakdown,
            [
                MonthlyAmount(
                    month="2024-01",
                    start_date=date(2024, 1, 30),
                    end_date=date(2024, 1, 31),
                    amount=Decimal("20"),
                    occurrences=2,
                ),
                MonthlyAmount(
                    month="2024-02",
                    start_date=date(2024, 2, 1),
                    end_date=date(2024, 2, 2),
                    amount=Decimal("20"),
                    occurrences=2,
                ),
            ],
        )

    def test_range_reaching_last_calendar_day(self) -> None:
        expense = make_expense(10, "daily", "9999-12-01")

        self.assertEqual(range_amount(expense, "9999-12-30", "9999-12-31"), Decimal("20"))
        breakdown = monthly_breakdown(expense, date(9999, 11, 30), date.max)
        self.assertEqual([bucket.month for bucket in breakdown], ["9999-11", "9999-12"])
        self.assertEqual(breakdown[1].amount, Decimal("310"))

    def test_summarize_recurring_expenses(self) -> None:
        rent = make_expense(10, "daily", "2024-01-01", name="Rent")
        paused = make_expense(50, "daily", "2024-01-01", name="Music", isActive=False)

        report = summarize_recurring_expenses([rent, paused], date(2024, 1, 1), date(2024, 2, 29))

        self.assertEqual(report.total, Decimal("600"))
        self.assertEqual([entry.description for entry in report.entries], ["Rent", "Music"])
        self.assertEqual(report.entries[0].occurrences, 60)
        self.assertEqual(len(report.entries[0].monthly), 2)
        self.assertEqual(report.entries[1].amount, Decimal("0"))
        self.assertEqual(report.entries[1].occurrences, 0)

    def test_summarize_rejects_inverted_range(self) -> None:
        with self.assertRaises(ValueError):
            summarize_recurring_expenses([], date(2024, 2, 1), date(2024, 1, 1))


if __name__ == "__main__":
    unittest.main()
