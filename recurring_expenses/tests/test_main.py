import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from recurring_expenses.main import MAX_RANGE_DAYS, app

RENT = {
    "name": "Rent",
    "amount": 300000,
    "recurrence": {"pattern": "monthly", "interval": 1, "startDate": "2024-01-15"},
}


class RecurringExpenseApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)

    def test_health(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_preview_describes_expense(self) -> None:
        response = self.client.post(
            "/recurring-expenses/preview", json={"expense": RENT, "today": "2024-02-01"}
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["config"]["pattern"], "monthly")
        self.assertEqual(body["config"]["month_days"], [])
        self.assertEqual(body["name"], "Rent")
        self.assertEqual(body["frequency"], "every month on day 15")
        self.assertEqual(body["status"], "Active")
        self.assertEqual(body["next_occurrence"], "2024-02-15")
        self.assertEqual(Decimal(body["monthly_amount"]), Decimal("300000"))
        self.assertTrue(body["validation"]["is_valid"])
        self.assertEqual(body["legacy_config"]["frequency"], "monthly")
        self.assertEqual(body["legacy_config"]["startDate"], "2024-01-15")
        self.assertEqual(body["warnings"], [])

    def test_validate_reports_errors(self) -> None:
        response = self.client.post(
            "/recurring-expenses/validate",
            json={"expense": {"amount": 0, "recurrence": {"pattern": "monthly"}}},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertFalse(body["is_valid"])
        self.assertIn("Amount must be greater than 0.", body["errors"])
        self.assertIn("Interval is required.", body["errors"])

    def test_range_amount(self) -> None:
        expense = {
            "amount": 3044,
            "recurrence": {
                "pattern": "monthly",
                "interval": 1,
                "startDate": "2024-01-01",
                "config": {"monthDays": [1, 15]},
            },
        }

        response = self.client.post(
            "/recurring-expenses/range-amount",
            json={"expense": expense, "start_date": "2024-01-01", "end_date": "2024-03-31"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.json()["amount"]), Decimal("600"))

    def test_occurrences(self) -> None:
        response = self.client.post(
            "/recurring-expenses/occurrences",
            json={"expense": RENT, "start_date": "2024-01-01", "end_date": "2024-03-31"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()["occurrences"], ["2024-01-15", "2024-02-15", "2024-03-15"]
        )

    def test_inverted_range_is_rejected(self) -> None:
        response = self.client.post(
            "/recurring-expenses/range-amount",
            json={"expense": RENT, "start_date": "2024-03-01", "end_date": "2024-01-01"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Start date must be on or before end date.")

    def test_oversized_range_is_rejected(self) -> None:
        response = self.client.post(
            "/recurring-expenses/report",
            json={"expenses": [RENT], "start_date": "2000-01-01", "end_date": "2030-01-01"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["detail"], f"Date range cannot exceed {MAX_RANGE_DAYS} days."
        )

    def test_report(self) -> None:
        towels = {
            "name": "Towels",
            "amount": 10,
            "recurrence": {"pattern": "daily", "interval": 1, "startDate": "2024-01-01"},
        }

        response = self.client.post(
            "/recurring-expenses/report",
            json={"expenses": [RENT, towels], "start_date": "2024-01-01", "end_date": "2024-01-31"},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["entries"]), 2)
        self.assertEqual(body["entries"][1]["occurrences"], 31)
        self.assertEqual(Decimal(body["entries"][1]["amount"]), Decimal("310"))
        self.assertEqual(body["entries"][0]["monthly"][0]["month"], "2024-01")
        self.assertEqual(
            Decimal(body["total"]),
            Decimal(body["entries"][0]["amount"]) + Decimal("310"),
        )

    def test_materialize(self) -> None:
        template = {
            "name": "Towels",
            "amount": "45.00",
            "recurrence": {"pattern": "daily", "interval": 1, "startDate": "2024-01-01"},
        }

        response = self.client.post(
            "/recurring-expenses/materialize",
            json={
                "template": template,
                "process_date": "2024-01-03",
                "existing_dates": ["2024-01-02"],
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["created"], 2)
        self.assertEqual(body["skipped"], ["2024-01-02"])
        self.assertEqual(body["last_processed"], "2024-01-03")
        self.assertEqual(
            [entry["occurs_on"] for entry in body["entries"]], ["2024-01-01", "2024-01-03"]
        )
        self.assertEqual(body["entries"][0]["source"], "recurring-instance")


if __name__ == "__main__":
    unittest.main()
