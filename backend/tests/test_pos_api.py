"""End-to-end flows through the HTTP API: POS terminal, history and admin screens."""

from pharmapos.extensions import db
from pharmapos.models import Sale


def _add(client, headers, product_id, quantity=1):
    return client.post("/api/pos/cart/items", json={"productId": product_id, "quantity": quantity}, headers=headers)


class TestPosFlow:

    def test_cart_and_checkout(self, client, employee_headers, make_product):
        a = make_product("Amoxicillin 500mg", stock=3, unit_price_cents=500)
        b = make_product("Vitamin C", stock=10, unit_price_cents=250)

        assert _add(client, employee_headers, a.id, 2).status_code == 200
        cart = _add(client, employee_headers, b.id).get_json()
        assert cart["state"] == "items_in_cart"
        assert cart["itemCount"] == 3
        assert cart["totalCents"] == 1250

        over = _add(client, employee_headers, a.id, 2)
        assert over.status_code == 409
        assert over.get_json()["details"] == {"productId": a.id, "available": 3, "requested": 4}
        assert over.get_json()["cart"]["itemCount"] == 3

        cart = client.put(f"/api/pos/cart/items/{b.id}", json={"quantity": 4}, headers=employee_headers).get_json()
        assert cart["totalCents"] == 2000

        resp = client.post("/api/pos/checkout", json={"paymentMethod": "cash"}, headers=employee_headers)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["checkout"]["totalAmountCents"] == 2000
        assert len(body["checkout"]["sales"]) == 2
        assert body["cart"]["state"] == "completed"
        assert body["cart"]["itemCount"] == 0

        today = client.get("/api/sales/today", headers=employee_headers).get_json()
        assert today["count"] == 2
        assert today["totals"]["cashRevenueCents"] == 2000

        products = client.get("/api/pos/products?search=amox", headers=employee_headers).get_json()
        assert products["items"][0]["stock"] == 1

    def test_prescription_blocks_checkout(self, client, employee_headers, make_product):
        p = make_product("Tramadol 50mg", requires_prescription=True)
        _add(client, employee_headers, p.id)

        resp = client.post("/api/pos/checkout", json={"paymentMethod": "card"}, headers=employee_headers)
        assert resp.status_code == 400
        assert resp.get_json()["cart"]["state"] == "checkout_open"
        assert db.session.query(Sale).count() == 0

        cancelled = client.post("/api/pos/checkout/cancel", headers=employee_headers).get_json()
        assert cancelled["state"] == "items_in_cart"

        resp = client.post(
            "/api/pos/checkout",
            json={"paymentMethod": "card", "prescriptionNumber": "RX-42"},
            headers=employee_headers,
        )
        assert resp.status_code == 201
        [sale] = db.session.query(Sale).all()
        assert sale.prescription_number == "RX-42"

    def test_non_text_checkout_fields_keep_cart_usable(self, client, employee_headers, make_product):
        p = make_product(stock=5)
        _add(client, employee_headers, p.id)

        for body in (
            {"paymentMethod": "cash", "notes": 12345},
            {"paymentMethod": "cash", "prescriptionNumber": 42},
            {"paymentMethod": "cash", "customerId": "abc"},
        ):
            resp = client.post("/api/pos/checkout", json=body, headers=employee_headers)
            assert resp.status_code == 400
            assert resp.get_json()["cart"]["state"] == "checkout_open"
        assert db.session.query(Sale).count() == 0

        assert client.post("/api/pos/checkout/cancel", headers=employee_headers).status_code == 200
        assert _add(client, employee_headers, p.id).get_json()["itemCount"] == 2

        resp = client.post(
            "/api/pos/checkout",
            json={"paymentMethod": "cash", "notes": " regular "},
            headers=employee_headers,
        )
        assert resp.status_code == 201
        [sale] = db.session.query(Sale).all()
        assert sale.quantity == 2
        assert sale.notes == "regular"

    def test_empty_cart_cannot_check_out(self, client, employee_headers):
        resp = client.post("/api/pos/checkout", json={"paymentMethod": "cash"}, headers=employee_headers)
        assert resp.status_code == 409
        assert client.post("/api/pos/checkout/open", headers=employee_headers).status_code == 409

    def test_cart_edits_locked_while_checkout_open(self, client, employee_headers, make_product):
        p = make_product()
        _add(client, employee_headers, p.id)
        assert client.post("/api/pos/checkout/open", headers=employee_headers).status_code == 200
        assert _add(client, employee_headers, p.id).status_code == 409
        assert client.delete(f"/api/pos/cart/items/{p.id}", headers=employee_headers).status_code == 409

    def test_bad_cart_input(self, client, employee_headers, make_product):
        p = make_product()
        assert client.post("/api/pos/cart/items", json={}, headers=employee_headers).status_code == 400
        assert _add(client, employee_headers, 999).status_code == 404
        assert _add(client, employee_headers, p.id, "2").status_code == 400
        assert _add(client, employee_headers, p.id, 0).status_code == 400

    def test_carts_are_per_user(self, client, employee_headers, admin_headers, make_product):
        p = make_product()
        _add(client, employee_headers, p.id, 2)
        assert client.get("/api/pos/cart", headers=admin_headers).get_json()["itemCount"] == 0
        assert client.get("/api/pos/cart", headers=employee_headers).get_json()["itemCount"] == 2

    def test_logout_discards_cart(self, client, employee_headers, make_product):
        p = make_product()
        _add(client, employee_headers, p.id)
        assert client.post("/api/auth/logout", headers=employee_headers).status_code == 200
        assert client.get("/api/pos/cart", headers=employee_headers).status_code == 401

    def test_settlement_preview(self, client, employee_headers, make_product):
        p = make_product(unit_price_cents=500)
        _add(client, employee_headers, p.id, 2)
        client.post("/api/pos/checkout", json={"paymentMethod": "cash"}, headers=employee_headers)

        summary = client.get("/api/pos/settlement?pending=10.00", headers=employee_headers).get_json()
        assert summary["today"]["expectedCents"] == 1000
        assert summary["today"]["status"] == "Shortage"
        assert summary["lifetime"]["balanceCents"] == -1000
        assert summary["pendingAmountCents"] == 1000
        assert summary["projectedBalanceCents"] == 0
        assert summary["projectedStatus"] == "Balanced"

        assert client.get("/api/pos/settlement?pending=abc", headers=employee_headers).status_code == 400


class TestAdminApi:

    def _sell(self, client, headers, product_id, qty, method="cash"):
        _add(client, headers, product_id, qty)
        resp = client.post("/api/pos/checkout", json={"paymentMethod": method}, headers=headers)
        assert resp.status_code == 201

    def test_sales_listing_and_export(self, client, employee_headers, admin_headers, make_product):
        p = make_product("Amoxicillin 500mg", unit_price_cents=500)
        self._sell(client, employee_headers, p.id, 2)
        self._sell(client, employee_headers, p.id, 1, method="card")

        listing = client.get("/api/sales?paymentMethod=card", headers=admin_headers).get_json()
        assert listing["count"] == 1
        assert listing["totals"]["cardItems"] == 1

        resp = client.get("/api/sales/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert 'filename="sales_export_' in resp.headers["Content-Disposition"]
        lines = resp.get_data(as_text=True).strip().split("\n")
        assert lines[0].startswith("Date,Time,Product")
        assert len(lines) == 3
        assert all(",Walk-in," in line for line in lines[1:])

    def test_sales_month_query(self, client, admin_headers):
        assert client.get("/api/sales?year=2025&month=13", headers=admin_headers).status_code == 400
        assert client.get("/api/sales?year=2025", headers=admin_headers).status_code == 400
        assert client.get("/api/sales?dateRange=year", headers=admin_headers).status_code == 400
        assert client.get("/api/sales?year=2025&month=3", headers=admin_headers).get_json()["count"] == 0

    def test_employee_cannot_read_history(self, client, employee_headers):
        assert client.get("/api/sales", headers=employee_headers).status_code == 403
        assert client.get("/api/sales/export", headers=employee_headers).status_code == 403
        assert client.get("/api/reports/settlements", headers=employee_headers).status_code == 403

    def test_settlement_history(self, client, employee_user, employee_headers, admin_headers, make_product):
        p = make_product(unit_price_cents=500)
        self._sell(client, employee_headers, p.id, 3)
        client.post("/api/deposits", json={"amountSubmitted": 20, "notes": "Close of day"}, headers=employee_headers)

        history = client.get("/api/reports/settlements", headers=admin_headers).get_json()
        [day] = history["items"]
        assert day["expectedCents"] == 1500
        assert day["submittedCents"] == 2000
        assert day["status"] == "Excess"
        assert history["lifetime"]["balanceCents"] == 500

        scoped = client.get(
            f"/api/reports/settlements?employeeId={employee_user.id + 100}", headers=admin_headers
        ).get_json()
        assert scoped["count"] == 0

        balance = client.get("/api/reports/balance", headers=admin_headers).get_json()
        assert balance["status"] == "Excess"

    def test_audit_log_viewer(self, client, employee_headers, admin_headers, make_product):
        p = make_product()
        self._sell(client, employee_headers, p.id, 1)

        logs = client.get("/api/audit-logs?action=sale", headers=admin_headers).get_json()
        assert logs["count"] == 1
        assert logs["items"][0]["metadata"]["productId"] == p.id
        assert client.get("/api/audit-logs?dateRange=month", headers=admin_headers).status_code == 400

    def test_wholesalers_crud(self, client, admin_headers):
        resp = client.post(
            "/api/wholesalers",
            json={"name": "MedSupply Ltd", "contactPerson": "Kim", "email": "kim@medsupply.test", "balance": "150.75"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        wid = resp.get_json()["id"]
        assert resp.get_json()["balanceCents"] == 15075

        resp = client.put(f"/api/wholesalers/{wid}", json={"balance": "-20"}, headers=admin_headers)
        assert resp.get_json()["balanceCents"] == -2000

        assert client.post("/api/wholesalers", json={"name": "X", "email": "nope"}, headers=admin_headers).status_code == 400
        assert client.get("/api/wholesalers?search=kim", headers=admin_headers).get_json()["count"] == 1

        assert client.delete(f"/api/wholesalers/{wid}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/wholesalers/{wid}", headers=admin_headers).status_code == 404
        assert client.get("/api/wholesalers", headers=admin_headers).get_json()["count"] == 0

    def test_admin_screen_tabs(self, client, admin_headers, employee_headers):
        for tab in ("overview", "inventory", "sales", "audit", "wholesalers"):
            resp = client.get(f"/admin?tab={tab}", headers=admin_headers)
            assert resp.status_code == 200
            assert resp.get_json()["tab"] == tab
        assert client.get("/admin?tab=payroll", headers=admin_headers).status_code == 400
        assert client.get("/admin", headers=employee_headers).status_code == 403

        pos = client.get("/pos", headers=employee_headers).get_json()
        assert pos["screen"] == "pos"
        assert pos["settlement"]["today"]["expectedCents"] == 0
