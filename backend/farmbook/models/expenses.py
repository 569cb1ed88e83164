from __future__ import annotations

from ..extensions import db
from farmbook.time_utils import to_utc_z, utcnow
from .types import ScaledDecimal


class Expense(db.Model):
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    date = db.Column(db.Date, nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    amount = db.Column(ScaledDecimal(2), nullable=False)  # cents
    category = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat() if self.date else None,
            "item_name": self.item_name,
            "amount": float(self.amount) if self.amount is not None else None,
            "category": self.category,
            "created_at": to_utc_z(self.created_at),
        }
