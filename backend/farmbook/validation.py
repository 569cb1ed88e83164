from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from farmbook.time_utils import parse_iso_date


# Default upper bound for money and weight inputs; sales narrow it further
MAX_DECIMAL_VALUE = Decimal("999999999")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate username)."""


class NotFoundError(LookupError):
    """
    404-level lookup failure.

    Raised both for rows that do not exist and for rows owned by another
    tenant; callers cannot tell the two apart.
    """


# ---------------------------------------------------------------------------
# Shape validation (routes): presence and parse-ability only
# ---------------------------------------------------------------------------

def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def require_fields(payload: Any, fields: Iterable[str]) -> dict:
    """
    Ensure `payload` is a mapping and every field in `fields` is present and non-blank.

    Returns the payload so callers can chain.
    """
    if payload is None:
        payload = {}
    if not hasattr(payload, "get"):
        raise ValidationError("Invalid JSON payload")

    missing = [f for f in fields if _is_blank(payload.get(f))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return payload


def parse_decimal(value: Any, field: str) -> Decimal:
    """Parse a JSON number or numeric string into a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        # str() avoids binary float artifacts (0.1 -> 0.1000000000000000055...)
        value = str(value)
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return number


def parse_date(value: Any, field: str = "date") -> date:
    """Parse a YYYY-MM-DD calendar day."""
    if isinstance(value, date):
        return value
    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed


def clean_text(value: Any, field: str, *, max_length: int | None = None, required: bool = True) -> str | None:
    if _is_blank(value):
        if required:
            raise ValidationError(f"{field} cannot be blank")
        return None
    text = str(value).strip()
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


# ---------------------------------------------------------------------------
# Semantic validation (services): ranges and precision
# ---------------------------------------------------------------------------

def require_positive(
    value: Decimal,
    field: str,
    *,
    places: int | None = None,
    maximum: Decimal = MAX_DECIMAL_VALUE,
) -> Decimal:
    """
    Enforce 0 < value <= maximum and, when `places` is given,
    at most that many decimal places.
    """
    if not isinstance(value, Decimal):
        raise ValidationError(f"{field} must be a number")
    if value <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    if value > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum}")
    if places is not None and value.normalize().as_tuple().exponent < -places:
        raise ValidationError(f"{field} allows at most {places} decimal places")
    return value
