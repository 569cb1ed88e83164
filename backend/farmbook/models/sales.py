from __future__ import annotations

from ..extensions import db
from farmbook.time_utils import to_utc_z, utcnow
from .types import ScaledDecimal


def _number(value):
    return float(value) if value is not None else None


class Sale(db.Model):
    """
    A produce sale: weight sold, unit price, and the customer.

    total_price is derived (weight_kg * price_per_kg) and written by the
    service layer only. image_key points at the receipt photo in the blob store.
    """
    __tablename__ = "sales"
    __table_args__ = (
        # Tenant-scoped listing and date-bucket aggregation
        db.Index("ix_sales_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    date = db.Column(db.Date, nullable=False)

    # Stored as integer minor units (see ScaledDecimal).
    # weight has 3 decimal places and price 2, so the product fits exactly in 5
    weight_kg = db.Column(ScaledDecimal(3), nullable=False)
    price_per_kg = db.Column(ScaledDecimal(2), nullable=False)
    total_price = db.Column(ScaledDecimal(5), nullable=False)

    customer_name = db.Column(db.String(255), nullable=False)
    image_key = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat() if self.date else None,
            "weight_kg": _number(self.weight_kg),
            "price_per_kg": _number(self.price_per_kg),
            "total_price": _number(self.total_price),
            "customer_name": self.customer_name,
            "image_key": self.image_key,
            "created_at": to_utc_z(self.created_at),
        }
