# Overview: Service-layer operations for expenses.

from __future__ import annotations

from typing import Any, Mapping

from ..models import Expense
from ..validation import (
    ValidationError,
    clean_text,
    parse_date,
    parse_decimal,
    require_positive,
)
from .record_store import RecordStore


AMOUNT_PLACES = 2


def normalize_expense(fields: Mapping[str, Any]) -> dict:
    for name in ("date", "item_name", "amount"):
        if fields.get(name) is None:
            raise ValidationError(f"Missing required fields: {name}")

    amount = require_positive(parse_decimal(fields["amount"], "amount"), "amount", places=AMOUNT_PLACES)
    return {
        "date": parse_date(fields["date"]),
        "item_name": clean_text(fields["item_name"], "itemName", max_length=255),
        "amount": amount,
        # Optional; blank becomes NULL
        "category": clean_text(fields.get("category"), "category", max_length=64, required=False),
    }


store = RecordStore(Expense, label="Expense", normalize=normalize_expense)


def create_expense(owner_id: int, fields: Mapping[str, Any]) -> Expense:
    return store.create(owner_id, fields)


def get_expense(owner_id: int, expense_id: int) -> Expense:
    return store.get(owner_id, expense_id)


def list_expenses(owner_id: int) -> list[Expense]:
    return store.list(owner_id)


def update_expense(owner_id: int, expense_id: int, fields: Mapping[str, Any]) -> Expense:
    return store.update(owner_id, expense_id, fields)


def delete_expense(owner_id: int, expense_id: int) -> None:
    store.delete(owner_id, expense_id)
