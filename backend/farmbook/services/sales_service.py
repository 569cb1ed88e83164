# Overview: Service-layer operations for sales; row writes plus receipt images.

"""
Sales Service

A sale is a relational row plus an optional receipt image in the blob store.
The two stores share no transaction, so writes follow a fixed order:

  create:  put new blob  -> insert row           (row fails: delete new blob)
  update:  put new blob  -> update row -> delete old blob
                                                 (row fails: delete new blob)
  delete:  delete row    -> delete blob

A row therefore never references a key that has already been deleted. The
worst case after a crash is an orphaned blob, which
`flask maintenance orphan-blobs` finds and removes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from flask import current_app

from ..blobstore import Attachment, get_blob_store, make_blob_key
from ..extensions import db
from ..models import Sale
from ..validation import (
    clean_text,
    parse_date,
    parse_decimal,
    require_positive,
    ValidationError,
)
from .record_store import RecordStore


WEIGHT_PLACES = 3
PRICE_PLACES = 2

# The largest total (about 1e13 with 5 places) still fits a signed 64-bit
# column once scaled to minor units.
WEIGHT_MAX = Decimal("9999999.999")
PRICE_MAX = Decimal("999999.99")


def compute_total(weight_kg: Decimal, price_per_kg: Decimal) -> Decimal:
    """
    Sale total. The only place total_price is derived.

    weight has at most 3 decimal places and price at most 2, so the exact
    product has at most 5 and needs no rounding.
    """
    return weight_kg * price_per_kg


def normalize_sale(fields: Mapping[str, Any]) -> dict:
    """
    Validate a full set of sale fields and return the column values.

    Any client-supplied total is ignored; total_price is always recomputed.
    """
    for name in ("date", "weight_kg", "price_per_kg", "customer_name"):
        if fields.get(name) is None:
            raise ValidationError(f"Missing required fields: {name}")

    weight = require_positive(
        parse_decimal(fields["weight_kg"], "weight"), "weight", places=WEIGHT_PLACES, maximum=WEIGHT_MAX
    )
    price = require_positive(
        parse_decimal(fields["price_per_kg"], "pricePerKg"), "pricePerKg", places=PRICE_PLACES, maximum=PRICE_MAX
    )

    return {
        "date": parse_date(fields["date"]),
        "weight_kg": weight,
        "price_per_kg": price,
        "total_price": compute_total(weight, price),
        "customer_name": clean_text(fields["customer_name"], "customer", max_length=255),
    }


store = RecordStore(Sale, label="Sale", normalize=normalize_sale, server_fields={"image_key"})


def _upload(attachment: Attachment) -> str:
    key = make_blob_key(attachment.filename)
    get_blob_store().put(key, attachment.data, attachment.content_type)
    return key


def _discard_blob(key: str | None) -> None:
    """Best-effort blob removal; failures leave an orphan and are logged."""
    if not key:
        return
    try:
        get_blob_store().delete(key)
    except Exception:
        current_app.logger.warning("Failed to delete blob %s; left as orphan", key, exc_info=True)


def create_sale(owner_id: int, fields: Mapping[str, Any], attachment: Attachment | None = None) -> Sale:
    # Reject bad input before anything reaches the blob store
    store.validate(fields)

    image_key = _upload(attachment) if attachment else None
    try:
        return store.create(owner_id, fields, image_key=image_key)
    except Exception:
        db.session.rollback()
        _discard_blob(image_key)
        raise


def get_sale(owner_id: int, sale_id: int) -> Sale:
    return store.get(owner_id, sale_id)


def list_sales(owner_id: int, limit: int | None = None) -> list[Sale]:
    """Newest sales first; limited to SALES_LIST_LIMIT unless a limit is given."""
    if limit is None:
        limit = int(current_app.config.get("SALES_LIST_LIMIT", 20))
    return store.list(owner_id, limit=limit)


def update_sale(
    owner_id: int,
    sale_id: int,
    fields: Mapping[str, Any],
    attachment: Attachment | None = None,
) -> Sale:
    """
    Replace a sale's fields; with an attachment, also replace its image.

    Without an attachment the existing image is kept.
    """
    existing = store.get(owner_id, sale_id)
    store.validate(fields)

    old_key = existing.image_key
    new_key = _upload(attachment) if attachment else None
    try:
        sale = store.update(owner_id, sale_id, fields, image_key=new_key or old_key)
    except Exception:
        db.session.rollback()
        _discard_blob(new_key)
        raise

    if new_key and old_key and old_key != new_key:
        _discard_blob(old_key)
    return sale


def delete_sale(owner_id: int, sale_id: int) -> None:
    image_key = store.get(owner_id, sale_id).image_key
    store.delete(owner_id, sale_id)
    _discard_blob(image_key)
