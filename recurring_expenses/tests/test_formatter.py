import unittest
from datetime import date
from decimal import Decimal

from recurring_expenses.formatter import (
    ExpenseSummary,
    describe_recurrence,
    format_amount,
    format_date_range,
    format_status,
    summarize_expense,
)
from recurring_expenses.recurrence_config import load_recurring_expense, normalize_recurrence

TODAY = date(2024, 6, 1)


def make_config(pattern, interval=1, start="2024-01-01", **extra):
    recurrence = {"pattern": pattern, "interval": interval, "startDate": start}
    recurrence.update(extra)
    return normalize_recurrence({"recurrence": recurrence}, TODAY).config


class FormatterTests(unittest.TestCase):
    def test_describe_daily(self) -> None:
        self.assertEqual(describe_recurrence(make_config("daily")), "every day")
        self.assertEqual(describe_recurrence(make_config("daily", 3)), "every 3 days")

    def test_describe_weekly_days(self) -> None:
        config = make_config("weekly", 2, config={"weekDays": [5, 1]})

        self.assertEqual(describe_recurrence(config), "every 2 weeks on Monday and Friday")

    def test_describe_weekly_all_days_omits_day_list(self) -> None:
        config = make_config("weekly", config={"weekDays": list(range(7))})

        self.assertEqual(describe_recurrence(config), "every week")

    def test_describe_monthly(self) -> None:
        single = make_config("monthly", start="2024-01-15")
        several = make_config("monthly", config={"monthDays": [15, 1]})

        self.assertEqual(describe_recurrence(single), "every month on day 15")
        self.assertEqual(describe_recurrence(several), "every month on days 1 and 15")

    def test_describe_yearly(self) -> None:
        config = make_config("yearly", start="2023-03-15")

        self.assertEqual(describe_recurrence(config), "every year on March 15")

    def test_format_amount(self) -> None:
        self.assertEqual(format_amount(Decimal("1234.5")), "$1,234.50")
        self.assertEqual(format_amount(300000, "COP ", 0), "COP 300,000")
        self.assertEqual(format_amount("not a number"), "$0.00")
        self.assertEqual(format_amount(None), "$0.00")
        self.assertEqual(format_amount(float("nan")), "$0.00")

    def test_format_date_range(self) -> None:
        self.assertEqual(format_date_range(None, None), "No dates")
        self.assertEqual(format_date_range(date(2024, 1, 1), None), "From 2024-01-01")
        self.assertEqual(
            format_date_range(date(2024, 1, 1), date(2024, 12, 31)),
            "2024-01-01 - 2024-12-31",
        )

    def test_format_status(self) -> None:
        self.assertEqual(format_status(make_config("daily", isActive=False), TODAY), "Inactive")
        self.assertEqual(format_status(make_config("daily", endDate="2024-05-31"), TODAY), "Ended")
        self.assertEqual(
            format_status(make_config("daily", endDate="2024-06-01"), TODAY),
            "Active until 2024-06-01",
        )
        self.assertEqual(format_status(make_config("daily"), TODAY), "Active")

    def test_summarize_expense(self) -> None:
        expense = load_recurring_expense(
            {
                "name": "Rent",
                "amount": "1500",
                "recurrence": {"pattern": "monthly", "interval": 1, "startDate": "2024-01-01"},
            },
            TODAY,
        )

        self.assertEqual(
            summarize_expense(expense, TODAY),
            ExpenseSummary(
                name="Rent",
                amount="$1,500.00",
                frequency="every month on day 1",
                status="Active",
                date_range="From 2024-01-01",
                description="$1,500.00 every month on day 1",
            ),
        )

    def test_summarize_unnamed_expense(self) -> None:
        expense = load_recurring_expense({"amount": 20, "frequency": "daily"}, TODAY)

        self.assertEqual(summarize_expense(expense, TODAY).name, "Unnamed expense")


if __name__ == "__main__":
    unittest.main()
