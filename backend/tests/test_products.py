"""Product catalogue: admin writes, soft delete and stock adjustment auditing."""

from datetime import date

import pytest

from pharmapos.extensions import db
from pharmapos.models import AuditLog, Product, Sale
from pharmapos.services import products_service
from pharmapos.services.sales_service import CheckoutLine, record_checkout
from pharmapos.validation import ConflictError, NotFoundError, ValidationError


class TestProductService:

    def test_create_writes_audit(self, admin_user):
        p = products_service.create_product(
            patch={"name": "Cetirizine 10mg", "sku": "CET-10", "stock": 40, "unit_price_cents": 250},
            actor=admin_user,
        )
        assert p.status == "active"
        entry = db.session.query(AuditLog).filter_by(action="product_added").one()
        assert entry.event_metadata == {"productId": p.id, "sku": "CET-10", "stock": 40}

    def test_duplicate_sku_conflicts(self, admin_user, make_product):
        make_product("Cetirizine", sku="CET-10")
        with pytest.raises(ConflictError):
            products_service.create_product(patch={"name": "Other", "sku": "CET-10"}, actor=admin_user)

    def test_archived_sku_can_be_reused(self, admin_user, make_product):
        old = make_product("Cetirizine", sku="CET-10")
        products_service.archive_product(product_id=old.id, actor=admin_user)
        new = products_service.create_product(patch={"name": "Cetirizine v2", "sku": "CET-10"}, actor=admin_user)
        assert new.id != old.id

    def test_stock_change_is_stock_adjustment(self, admin_user, make_product):
        p = make_product(stock=10)
        products_service.update_product(product_id=p.id, patch={"stock": 25}, actor=admin_user)

        [entry] = db.session.query(AuditLog).all()
        assert entry.action == "stock_adjustment"
        assert entry.event_metadata == {"productId": p.id, "oldStock": 10, "newStock": 25}

    def test_mixed_update_writes_both_entries(self, admin_user, make_product):
        p = make_product(stock=10)
        products_service.update_product(
            product_id=p.id,
            patch={"stock": 12, "location": "Shelf B", "unit_price_cents": 550},
            actor=admin_user,
        )
        actions = sorted(e.action for e in db.session.query(AuditLog).all())
        assert actions == ["product_updated", "stock_adjustment"]
        updated = db.session.query(AuditLog).filter_by(action="product_updated").one()
        assert updated.event_metadata["fields"] == ["location", "unit_price_cents"]

    def test_unchanged_update_writes_nothing(self, admin_user, make_product):
        p = make_product(stock=10)
        products_service.update_product(product_id=p.id, patch={"stock": 10}, actor=admin_user)
        assert db.session.query(AuditLog).count() == 0

    def test_archive_keeps_sales_history(self, admin_user, employee_user, make_product):
        p = make_product("Amoxicillin 500mg")
        record_checkout(employee=employee_user, lines=[CheckoutLine(p.id, 1)], payment_method="cash")

        products_service.archive_product(product_id=p.id, actor=admin_user)

        assert db.session.get(Product, p.id).status == "archived"
        [sale] = db.session.query(Sale).all()
        assert sale.product_name == "Amoxicillin 500mg"
        with pytest.raises(NotFoundError):
            products_service.get_product(p.id)
        assert products_service.get_product(p.id, include_archived=True).id == p.id
        with pytest.raises(NotFoundError):
            products_service.update_product(product_id=p.id, patch={"stock": 1}, actor=admin_user)

    def test_archive_twice_is_noop(self, admin_user, make_product):
        p = make_product()
        products_service.archive_product(product_id=p.id, actor=admin_user)
        products_service.archive_product(product_id=p.id, actor=admin_user)
        assert db.session.query(AuditLog).filter_by(action="product_archived").count() == 1

    def test_blank_name_rejected(self, admin_user, make_product):
        with pytest.raises(ValidationError):
            products_service.create_product(patch={"name": "  "}, actor=admin_user)
        p = make_product()
        with pytest.raises(ValidationError):
            products_service.update_product(product_id=p.id, patch={"name": ""}, actor=admin_user)


class TestProductApi:

    def test_create_with_money_fields(self, client, admin_headers):
        resp = client.post(
            "/api/products",
            json={
                "name": "Amlodipine 5mg",
                "unitPrice": "3.25",
                "costPrice": 1.1,
                "stock": "30",
                "expiryDate": "2027-01-31",
                "requiresPrescription": True,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["unitPriceCents"] == 325
        assert body["costPriceCents"] == 110
        assert body["stock"] == 30
        assert body["expiryDate"] == "2027-01-31"
        assert db.session.get(Product, body["id"]).expiry_date == date(2027, 1, 31)

    @pytest.mark.parametrize("payload", [
        {"unitPrice": "1.00"},
        {"name": "X"},
        {"name": "X", "unitPrice": "-1"},
        {"name": "X", "unitPrice": "abc"},
        {"name": "X", "unitPrice": "1", "stock": 1.5},
        {"name": "X", "unitPrice": "1", "stock": -3},
        {"name": "X", "unitPrice": "1", "status": "archived"},
    ])
    def test_create_rejects_bad_payload(self, client, admin_headers, payload):
        resp = client.post("/api/products", json=payload, headers=admin_headers)
        assert resp.status_code == 400
        assert db.session.query(Product).count() == 0

    def test_employee_cannot_write(self, client, employee_headers, make_product):
        p = make_product()
        assert client.post("/api/products", json={"name": "X", "unitPrice": 1}, headers=employee_headers).status_code == 403
        assert client.put(f"/api/products/{p.id}", json={"stock": 1}, headers=employee_headers).status_code == 403
        assert client.delete(f"/api/products/{p.id}", headers=employee_headers).status_code == 403

    def test_listing_filters(self, client, employee_headers, make_product):
        make_product("Amoxicillin 500mg", category="Antibiotics", stock=1, reorder_level=5)
        make_product("Ibuprofen 200mg", category="Analgesics", stock=50, barcode="4006381333931")
        make_product("Old Syrup", status="archived")

        body = client.get("/api/products", headers=employee_headers).get_json()
        assert body["count"] == 2
        assert body["categories"] == ["Analgesics", "Antibiotics"]

        low = client.get("/api/products?stock=low", headers=employee_headers).get_json()
        assert [p["name"] for p in low["items"]] == ["Amoxicillin 500mg"]

        by_barcode = client.get("/api/products?search=400638", headers=employee_headers).get_json()
        assert [p["name"] for p in by_barcode["items"]] == ["Ibuprofen 200mg"]

        by_category = client.get("/api/products?category=Analgesics", headers=employee_headers).get_json()
        assert by_category["count"] == 1

    def test_delete_archives(self, client, admin_headers, make_product):
        p = make_product()
        resp = client.delete(f"/api/products/{p.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["product"]["status"] == "archived"

        assert client.get(f"/api/products/{p.id}", headers=admin_headers).status_code == 404
        assert client.get("/api/products", headers=admin_headers).get_json()["count"] == 0
        assert client.delete("/api/products/999", headers=admin_headers).status_code == 404

    def test_update_returns_conflict_on_sku(self, client, admin_headers, make_product):
        make_product("A", sku="DUP")
        b = make_product("B", sku="OTHER")
        resp = client.put(f"/api/products/{b.id}", json={"sku": "DUP"}, headers=admin_headers)
        assert resp.status_code == 409
