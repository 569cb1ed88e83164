# Overview: Flask API routes for expenses; parses input and returns JSON responses.

# backend/farmbook/routes/expenses.py
"""
Expense API routes.

JSON body: {date, itemName, amount, category?}. Records are returned with
column names (item_name, amount, category, ...).
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, current_tenant
from ..services import expenses_service
from ..services import reporting_service
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_date,
    parse_decimal,
    require_fields,
)


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")

EXPENSE_FIELDS = ("date", "itemName", "amount")


def _expense_fields_from_request() -> dict:
    data = require_fields(request.get_json(silent=True), EXPENSE_FIELDS)
    return {
        "date": parse_date(data.get("date")),
        "item_name": data.get("itemName"),
        "amount": parse_decimal(data.get("amount"), "amount"),
        "category": data.get("category"),
    }


@expenses_bp.get("/summary")
@require_auth
def expenses_summary_route():
    """
    Daily, monthly, yearly and all-time expense totals.

    Query params:
    - date: YYYY-MM-DD (optional) - reference day, defaults to today (UTC)
    """
    try:
        raw = request.args.get("date")
        today = parse_date(raw) if raw else None

        summary = reporting_service.expenses_summary(current_tenant().user_id, today)
        return jsonify(summary), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute expenses summary")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.post("")
@require_auth
def create_expense_route():
    try:
        expense = expenses_service.create_expense(current_tenant().user_id, _expense_fields_from_request())
        return jsonify(expense.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.get("")
@require_auth
def list_expenses_route():
    try:
        expenses = expenses_service.list_expenses(current_tenant().user_id)
        return jsonify([e.to_dict() for e in expenses]), 200
    except Exception:
        current_app.logger.exception("Failed to list expenses")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.get("/<int:expense_id>")
@require_auth
def get_expense_route(expense_id: int):
    try:
        expense = expenses_service.get_expense(current_tenant().user_id, expense_id)
        return jsonify(expense.to_dict()), 200
    except NotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.put("/<int:expense_id>")
@require_auth
def update_expense_route(expense_id: int):
    try:
        expense = expenses_service.update_expense(
            current_tenant().user_id, expense_id, _expense_fields_from_request()
        )
        return jsonify(expense.to_dict()), 200

    except NotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.delete("/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int):
    try:
        expenses_service.delete_expense(current_tenant().user_id, expense_id)
        return jsonify({"success": True}), 200

    except NotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": "Internal server error"}), 500
