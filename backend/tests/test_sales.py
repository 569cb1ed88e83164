# Overview: Pytest coverage for sales records, derived totals and receipt images.

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import StatementError

from farmbook.blobstore import Attachment
from farmbook.extensions import db
from farmbook.models import Expense, Sale
from farmbook.services import expenses_service, reporting_service, sales_service
from farmbook.validation import NotFoundError, ValidationError

from conftest import image_file, sale_form


def _fields(**overrides):
    fields = {
        "date": date(2024, 3, 15),
        "weight_kg": Decimal("10.5"),
        "price_per_kg": Decimal("2.25"),
        "customer_name": "Green Valley Co-op",
    }
    fields.update(overrides)
    return fields


class TestComputeTotal:

    def test_exact_product(self):
        assert sales_service.compute_total(Decimal("10.5"), Decimal("2.25")) == Decimal("23.625")

    def test_max_precision_needs_no_rounding(self):
        total = sales_service.compute_total(Decimal("0.001"), Decimal("0.01"))
        assert total == Decimal("0.00001")


class TestSaleValidation:

    @pytest.mark.parametrize("overrides", [
        {"weight_kg": Decimal("0")},
        {"weight_kg": Decimal("-1")},
        {"weight_kg": Decimal("1.2345")},
        {"price_per_kg": Decimal("0")},
        {"price_per_kg": Decimal("1.005")},
        {"price_per_kg": Decimal("1000000000")},
        {"price_per_kg": Decimal("1000000")},
        {"weight_kg": Decimal("10000000")},
        {"customer_name": "   "},
        {"customer_name": None},
        {"date": "2024-02-30"},
    ])
    def test_invalid_fields_rejected(self, user_a, overrides):
        with pytest.raises(ValidationError):
            sales_service.create_sale(user_a.id, _fields(**overrides))

    def test_customer_is_trimmed(self, user_a):
        sale = sales_service.create_sale(user_a.id, _fields(customer_name="  Bob  "))
        assert sale.customer_name == "Bob"

    def test_largest_allowed_values_accepted(self, user_a):
        sale_id = sales_service.create_sale(
            user_a.id,
            _fields(weight_kg=sales_service.WEIGHT_MAX, price_per_kg=sales_service.PRICE_MAX),
        ).id
        db.session.expunge_all()

        stored = db.session.get(Sale, sale_id)
        assert stored.total_price == Decimal("9999999899000.00001")


class TestSalesApi:

    def test_create_computes_total(self, client, headers_a):
        resp = client.post("/api/sales", data=sale_form(), headers=headers_a)
        assert resp.status_code == 201
        body = resp.json
        assert body["weight_kg"] == 10.5
        assert body["price_per_kg"] == 2.25
        assert body["total_price"] == 23.625
        assert body["customer_name"] == "Green Valley Co-op"
        assert body["date"] == "2024-03-15"
        assert body["image_key"] is None
        assert body["image_url"] is None

    def test_client_total_is_ignored(self, client, headers_a):
        resp = client.post(
            "/api/sales",
            json={**sale_form(), "totalPrice": 999, "total_price": 999},
            headers=headers_a,
        )
        assert resp.status_code == 201
        assert resp.json["total_price"] == 23.625

    @pytest.mark.parametrize("overrides", [
        {"weight": ""},
        {"weight": "abc"},
        {"weight": "0"},
        {"pricePerKg": "-2"},
        {"customer": ""},
        {"date": "15/03/2024"},
    ])
    def test_invalid_input_is_400(self, client, headers_a, overrides):
        resp = client.post("/api/sales", data=sale_form(**overrides), headers=headers_a)
        assert resp.status_code == 400
        assert "error" in resp.json

    def test_create_with_image(self, client, headers_a, blob_store):
        data = sale_form(image=image_file("receipt.jpg", b"JPEGDATA"))
        resp = client.post("/api/sales", data=data, headers=headers_a, content_type="multipart/form-data")
        assert resp.status_code == 201

        key = resp.json["image_key"]
        assert key.endswith("-receipt.jpg")
        assert resp.json["image_url"].endswith(f"/api/images/{key}")
        assert blob_store.get(key).data == b"JPEGDATA"

        image = client.get(f"/api/images/{key}")
        assert image.status_code == 200
        assert image.data == b"JPEGDATA"
        assert image.mimetype == "image/jpeg"

    def test_non_image_upload_rejected(self, client, headers_a, blob_store):
        data = sale_form(image=image_file("notes.txt", b"hello", "text/plain"))
        resp = client.post("/api/sales", data=data, headers=headers_a, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert list(blob_store.keys()) == []

    def test_get_update_delete(self, client, headers_a):
        sale_id = client.post("/api/sales", data=sale_form(), headers=headers_a).json["id"]

        resp = client.get(f"/api/sales/{sale_id}", headers=headers_a)
        assert resp.status_code == 200
        assert resp.json["id"] == sale_id

        resp = client.put(
            f"/api/sales/{sale_id}",
            data=sale_form(weight="4", pricePerKg="3.10", customer="Market Stall"),
            headers=headers_a,
        )
        assert resp.status_code == 200
        assert resp.json["total_price"] == 12.4
        assert resp.json["customer_name"] == "Market Stall"

        resp = client.delete(f"/api/sales/{sale_id}", headers=headers_a)
        assert resp.status_code == 200
        assert resp.json == {"success": True}

        assert client.get(f"/api/sales/{sale_id}", headers=headers_a).status_code == 404
        assert client.delete(f"/api/sales/{sale_id}", headers=headers_a).status_code == 404

    def test_update_missing_is_404(self, client, headers_a):
        resp = client.put("/api/sales/9999", data=sale_form(), headers=headers_a)
        assert resp.status_code == 404


class TestSaleImages:

    def test_update_with_new_image_replaces_old(self, user_a, blob_store):
        sale = sales_service.create_sale(user_a.id, _fields(), Attachment("a.jpg", b"old", "image/jpeg"))
        old_key = sale.image_key

        updated = sales_service.update_sale(
            user_a.id, sale.id, _fields(), Attachment("b.jpg", b"new", "image/jpeg")
        )

        assert updated.image_key != old_key
        assert blob_store.get(updated.image_key).data == b"new"
        assert not blob_store.exists(old_key)

    def test_update_without_image_keeps_existing(self, user_a, blob_store):
        sale = sales_service.create_sale(user_a.id, _fields(), Attachment("a.jpg", b"old", "image/jpeg"))
        key = sale.image_key

        updated = sales_service.update_sale(user_a.id, sale.id, _fields(customer_name="Other"))

        assert updated.image_key == key
        assert blob_store.exists(key)

    def test_delete_removes_image(self, user_a, blob_store):
        sale = sales_service.create_sale(user_a.id, _fields(), Attachment("a.jpg", b"img", "image/jpeg"))
        key = sale.image_key

        sales_service.delete_sale(user_a.id, sale.id)

        assert not blob_store.exists(key)
        with pytest.raises(NotFoundError):
            sales_service.get_sale(user_a.id, sale.id)

    def test_failed_row_write_removes_uploaded_blob(self, user_a, blob_store, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(sales_service.store, "create", boom)

        with pytest.raises(RuntimeError):
            sales_service.create_sale(user_a.id, _fields(), Attachment("a.jpg", b"img", "image/jpeg"))

        assert list(blob_store.keys()) == []

    def test_failed_update_keeps_old_image_and_drops_new(self, user_a, blob_store, monkeypatch):
        sale = sales_service.create_sale(user_a.id, _fields(), Attachment("a.jpg", b"old", "image/jpeg"))
        old_key = sale.image_key

        def boom(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(sales_service.store, "update", boom)

        with pytest.raises(RuntimeError):
            sales_service.update_sale(user_a.id, sale.id, _fields(), Attachment("b.jpg", b"new", "image/jpeg"))

        assert list(blob_store.keys()) == [old_key]

    def test_invalid_input_uploads_nothing(self, user_a, blob_store):
        with pytest.raises(ValidationError):
            sales_service.create_sale(
                user_a.id, _fields(weight_kg=Decimal("0")), Attachment("a.jpg", b"img", "image/jpeg")
            )
        assert list(blob_store.keys()) == []


class TestSalesListing:

    def test_newest_first_limited_to_20(self, client, user_a, headers_a):
        start = date(2024, 1, 1)
        for i in range(25):
            sales_service.create_sale(user_a.id, _fields(date=start + timedelta(days=i)))

        resp = client.get("/api/sales", headers=headers_a)
        assert resp.status_code == 200
        dates = [s["date"] for s in resp.json]
        assert len(dates) == 20
        assert dates[0] == "2024-01-25"
        assert dates == sorted(dates, reverse=True)

    def test_same_day_ordered_by_creation(self, user_a):
        first = sales_service.create_sale(user_a.id, _fields(customer_name="first"))
        second = sales_service.create_sale(user_a.id, _fields(customer_name="second"))

        listed = sales_service.list_sales(user_a.id)
        assert [s.id for s in listed] == [second.id, first.id]


class TestStoredPrecision:
    """Values read back from the database equal what was written, digit for digit."""

    def test_large_total_survives_reload(self, user_a):
        sale_id = sales_service.create_sale(
            user_a.id, _fields(weight_kg=Decimal("1234567.123"), price_per_kg=Decimal("98765.43"))
        ).id
        db.session.expunge_all()

        stored = db.session.get(Sale, sale_id)
        assert stored.weight_kg == Decimal("1234567.123")
        assert stored.price_per_kg == Decimal("98765.43")
        assert stored.total_price == Decimal("121932552766.95789")
        assert stored.total_price == sales_service.compute_total(stored.weight_kg, stored.price_per_kg)

    def test_expense_amount_survives_reload(self, user_a):
        expense_id = expenses_service.create_expense(
            user_a.id, {"date": date(2024, 3, 15), "item_name": "Tractor", "amount": Decimal("987654321.09")}
        ).id
        db.session.expunge_all()

        assert db.session.get(Expense, expense_id).amount == Decimal("987654321.09")

    def test_sums_are_exact(self, user_a):
        for price in ("0.10", "0.20", "0.30"):
            sales_service.create_sale(
                user_a.id, _fields(weight_kg=Decimal("1"), price_per_kg=Decimal(price))
            )

        summary = reporting_service.sales_summary(user_a.id, date(2024, 3, 15))
        assert summary["daily"]["total_sales"] == 0.6
        assert summary["allTime"]["total_weight"] == 3.0

    def test_too_many_places_never_reach_the_column(self, user_a):
        sale = sales_service.create_sale(user_a.id, _fields())
        sale.price_per_kg = Decimal("2.255")
        with pytest.raises(StatementError):
            db.session.flush()
        db.session.rollback()


class TestSaleRoundTrip:

    def test_create_update_replaces_image_over_http(self, client, headers_a, blob_store):
        resp = client.post(
            "/api/sales",
            data=sale_form(weight="10", pricePerKg="50", image=image_file("first.jpg", b"FIRST")),
            headers=headers_a,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201
        assert resp.json["total_price"] == 500
        sale_id = resp.json["id"]
        old_key = resp.json["image_key"]
        assert client.get(f"/api/images/{old_key}").status_code == 200

        resp = client.put(
            f"/api/sales/{sale_id}",
            data=sale_form(weight="4", pricePerKg="50", image=image_file("second.jpg", b"SECOND")),
            headers=headers_a,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.json["total_price"] == 200
        new_key = resp.json["image_key"]
        assert new_key != old_key

        assert client.get(f"/api/images/{old_key}").status_code == 404
        new_image = client.get(f"/api/images/{new_key}")
        assert new_image.status_code == 200
        assert new_image.data == b"SECOND"

        fetched = client.get(f"/api/sales/{sale_id}", headers=headers_a).json
        assert fetched["total_price"] == 200
        assert fetched["image_key"] == new_key
