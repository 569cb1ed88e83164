# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/farmbook/routes/sales.py
"""
Sales API routes.

TENANCY: The owner is always current_tenant().user_id; a sale id that
belongs to someone else answers 404, exactly like a missing one.

Create/update accept multipart/form-data (fields date, weight, pricePerKg,
customer and an optional image file). A JSON body with the same fields is
accepted when no image is sent.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, current_tenant
from ..services import reporting_service
from ..services import sales_service
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_date,
    parse_decimal,
    require_fields,
)
from .images import attachment_from_request, image_url


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALE_FORM_FIELDS = ("date", "weight", "pricePerKg", "customer")


def _request_data():
    if request.form:
        return request.form
    return request.get_json(silent=True) or {}


def _sale_fields_from_request() -> dict:
    """Shape validation: required fields present, numbers and date parseable."""
    data = require_fields(_request_data(), SALE_FORM_FIELDS)
    return {
        "date": parse_date(data.get("date")),
        "weight_kg": parse_decimal(data.get("weight"), "weight"),
        "price_per_kg": parse_decimal(data.get("pricePerKg"), "pricePerKg"),
        "customer_name": data.get("customer"),
    }


def _sale_json(sale) -> dict:
    payload = sale.to_dict()
    payload["image_url"] = image_url(sale.image_key)
    return payload


@sales_bp.post("")
@require_auth
def create_sale_route():
    """Record a sale. total_price is computed server-side."""
    try:
        fields = _sale_fields_from_request()
        attachment = attachment_from_request("image")

        sale = sales_service.create_sale(current_tenant().user_id, fields, attachment)

        return jsonify(_sale_json(sale)), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """Newest sales first (date, then creation time), limited to SALES_LIST_LIMIT."""
    try:
        sales = sales_service.list_sales(current_tenant().user_id)
        return jsonify([_sale_json(s) for s in sales]), 200
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/summary")
@require_auth
def sales_summary_route():
    """
    Daily, monthly, yearly and all-time totals.

    Query params:
    - date: YYYY-MM-DD (optional) - reference day, defaults to today (UTC)
    """
    try:
        raw = request.args.get("date")
        today = parse_date(raw) if raw else None

        summary = reporting_service.sales_summary(current_tenant().user_id, today)
        return jsonify(summary), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute sales summary")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(current_tenant().user_id, sale_id)
        return jsonify(_sale_json(sale)), 200
    except NotFoundError:
        return jsonify({"error": "Sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.put("/<int:sale_id>")
@require_auth
def update_sale_route(sale_id: int):
    """
    Replace a sale. A new image replaces (and deletes) the previous one;
    without an image the current one is kept.
    """
    try:
        fields = _sale_fields_from_request()
        attachment = attachment_from_request("image")

        sale = sales_service.update_sale(current_tenant().user_id, sale_id, fields, attachment)

        return jsonify(_sale_json(sale)), 200

    except NotFoundError:
        return jsonify({"error": "Sale not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
@require_auth
def delete_sale_route(sale_id: int):
    """Delete a sale and its image."""
    try:
        sales_service.delete_sale(current_tenant().user_id, sale_id)
        return jsonify({"success": True}), 200

    except NotFoundError:
        return jsonify({"error": "Sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
