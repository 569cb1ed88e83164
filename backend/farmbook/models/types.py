from __future__ import annotations

from decimal import Decimal

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator


class ScaledDecimal(TypeDecorator):
    """
    Fixed-point Decimal stored as an integer count of 10**-places units.

    SQLite keeps NUMERIC columns as REAL, which drops digits on large
    totals. Integer minor units round-trip exactly on every backend.
    Values with more than `places` decimal places are refused, never rounded.
    """

    impl = BigInteger
    cache_ok = True

    def __init__(self, places: int):
        super().__init__()
        self.places = places

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        scaled = Decimal(value).scaleb(self.places)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{value} has more than {self.places} decimal places")
        return int(scaled)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        # SUM() over BIGINT comes back as NUMERIC on PostgreSQL
        return Decimal(value).scaleb(-self.places)
