# Overview: Pytest coverage for daily/monthly/yearly/all-time summaries.

from datetime import date
from decimal import Decimal

import pytest

from farmbook.services import expenses_service, reporting_service, sales_service
from farmbook.time_utils import month_bounds


def _sale(owner_id, day, weight, price):
    sales_service.create_sale(owner_id, {
        "date": day,
        "weight_kg": Decimal(weight),
        "price_per_kg": Decimal(price),
        "customer_name": "Buyer",
    })


def _expense(owner_id, day, amount):
    expenses_service.create_expense(owner_id, {"date": day, "item_name": "Item", "amount": Decimal(amount)})


@pytest.fixture
def seeded_sales(user_a):
    _sale(user_a.id, date(2024, 3, 15), "10", "2")      # today: 20
    _sale(user_a.id, date(2024, 3, 1), "5", "3")        # this month: 15
    _sale(user_a.id, date(2024, 1, 10), "2.5", "4")     # this year: 10
    _sale(user_a.id, date(2023, 12, 31), "1", "100")    # last year: 100
    return user_a


class TestBucketRanges:

    def test_month_bounds_handles_december_and_leap_years(self):
        assert month_bounds(date(2024, 12, 5)) == (date(2024, 12, 1), date(2024, 12, 31))
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(date(2023, 2, 10)) == (date(2023, 2, 1), date(2023, 2, 28))

    def test_bucket_ranges(self):
        ranges = reporting_service.bucket_ranges(date(2024, 3, 15))
        assert ranges["daily"] == (date(2024, 3, 15), date(2024, 3, 15))
        assert ranges["monthly"] == (date(2024, 3, 1), date(2024, 3, 31))
        assert ranges["yearly"] == (date(2024, 1, 1), date(2024, 12, 31))
        assert ranges["allTime"] is None


class TestSalesSummary:

    def test_empty_buckets_are_zero(self, user_a):
        summary = reporting_service.sales_summary(user_a.id, date(2024, 3, 15))
        assert set(summary) == set(reporting_service.BUCKETS)
        for bucket in summary.values():
            assert bucket == {"total_sales": 0, "total_weight": 0}

    def test_buckets(self, seeded_sales):
        summary = reporting_service.sales_summary(seeded_sales.id, date(2024, 3, 15))
        assert summary["daily"] == {"total_sales": 20, "total_weight": 10}
        assert summary["monthly"] == {"total_sales": 35, "total_weight": 15}
        assert summary["yearly"] == {"total_sales": 45, "total_weight": 17.5}
        assert summary["allTime"] == {"total_sales": 145, "total_weight": 18.5}

    def test_summary_endpoint_with_anchor_date(self, client, seeded_sales, headers_a):
        resp = client.get("/api/sales/summary?date=2024-03-01", headers=headers_a)
        assert resp.status_code == 200
        assert resp.json["daily"] == {"total_sales": 15, "total_weight": 5}
        assert resp.json["monthly"]["total_sales"] == 35

    def test_summary_endpoint_rejects_bad_anchor(self, client, headers_a):
        resp = client.get("/api/sales/summary?date=March", headers=headers_a)
        assert resp.status_code == 400

    def test_summary_defaults_to_today(self, client, user_a, headers_a, monkeypatch):
        monkeypatch.setattr(reporting_service, "today_utc", lambda: date(2024, 3, 15))
        _sale(user_a.id, date(2024, 3, 15), "1", "1")

        resp = client.get("/api/sales/summary", headers=headers_a)
        assert resp.json["daily"] == {"total_sales": 1, "total_weight": 1}


class TestExpensesSummary:

    def test_buckets(self, client, user_a, headers_a):
        _expense(user_a.id, date(2024, 3, 15), "10.25")
        _expense(user_a.id, date(2024, 3, 2), "4.75")
        _expense(user_a.id, date(2023, 6, 1), "100")

        resp = client.get("/api/expenses/summary?date=2024-03-15", headers=headers_a)
        assert resp.status_code == 200
        assert resp.json == {
            "daily": {"total_expenses": 10.25},
            "monthly": {"total_expenses": 15},
            "yearly": {"total_expenses": 15},
            "allTime": {"total_expenses": 115},
        }

    def test_empty_is_zero(self, user_a):
        summary = reporting_service.expenses_summary(user_a.id, date(2024, 3, 15))
        assert all(bucket == {"total_expenses": 0} for bucket in summary.values())
