from __future__ import annotations

from ..extensions import db
from farmbook.time_utils import utcnow


class User(db.Model):
    """
    Account that owns sales, notes and expenses.

    TENANCY: Each user is its own tenant. Every record table carries a
    user_id and every query against it filters on the authenticated user.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)

    # Bcrypt hashed password (never plaintext)
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_summary(self) -> dict:
        return {"id": self.id, "username": self.username}
