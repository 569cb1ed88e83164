# Overview: Service-layer operations for reporting; daily/monthly/yearly/all-time rollups.

"""
Aggregation Engine

Each summary is four independent SUM queries over one owner's rows:

- daily:   date == reference day
- monthly: first..last day of the reference month
- yearly:  Jan 1..Dec 31 of the reference year
- allTime: no date filter

Nothing is cached or maintained incrementally. Empty buckets report 0.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy import func

from ..extensions import db
from ..models import Expense, Sale
from farmbook.time_utils import month_bounds, today_utc, year_bounds


BUCKETS = ("daily", "monthly", "yearly", "allTime")


def bucket_ranges(today: date) -> dict[str, tuple[date, date] | None]:
    """Inclusive date range per bucket; None means unbounded."""
    return {
        "daily": (today, today),
        "monthly": month_bounds(today),
        "yearly": year_bounds(today),
        "allTime": None,
    }


def _sum_columns(model, owner_id: int, columns: Iterable, date_range: tuple[date, date] | None) -> list[float]:
    query = db.session.query(
        *[func.coalesce(func.sum(col), 0) for col in columns]
    ).filter(model.user_id == owner_id)
    if date_range is not None:
        start, end = date_range
        query = query.filter(model.date >= start, model.date <= end)
    row = query.one()
    return [float(value or 0) for value in row]


def sales_summary(owner_id: int, today: date | None = None) -> dict:
    """{bucket: {total_sales, total_weight}} for one owner."""
    today = today or today_utc()
    result = {}
    for bucket, date_range in bucket_ranges(today).items():
        total_sales, total_weight = _sum_columns(
            Sale, owner_id, (Sale.total_price, Sale.weight_kg), date_range
        )
        result[bucket] = {"total_sales": total_sales, "total_weight": total_weight}
    return result


def expenses_summary(owner_id: int, today: date | None = None) -> dict:
    """{bucket: {total_expenses}} for one owner."""
    today = today or today_utc()
    result = {}
    for bucket, date_range in bucket_ranges(today).items():
        (total_expenses,) = _sum_columns(Expense, owner_id, (Expense.amount,), date_range)
        result[bucket] = {"total_expenses": total_expenses}
    return result
