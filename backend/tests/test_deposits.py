"""Daily cash deposits and the settlement they feed."""

import pytest

from pharmapos.extensions import db
from pharmapos.models import AuditLog, DailyDeposit
from pharmapos.services import deposit_service
from pharmapos.services.sales_service import CheckoutLine, record_checkout
from pharmapos.time_utils import today_key
from pharmapos.validation import ValidationError


def _sell(employee, product, qty, method="cash"):
    return record_checkout(employee=employee, lines=[CheckoutLine(product.id, qty)], payment_method=method)


def test_deposit_captures_expected_cash(employee_user, other_employee, make_product):
    product = make_product(unit_price_cents=1000, stock=20)
    _sell(employee_user, product, 2)
    _sell(employee_user, product, 1, method="card")
    _sell(other_employee, product, 5)

    deposit = deposit_service.record_deposit(
        employee=employee_user,
        amount_submitted_cents=1500,
        notes="End of shift",
    )

    assert deposit.date == today_key()
    assert deposit.cash_revenue_cents == 2000
    assert deposit.amount_submitted_cents == 1500
    assert deposit.notes == "[REVENUE] End of shift"

    entry = db.session.query(AuditLog).filter_by(action="deposit_recorded").one()
    assert entry.event_metadata["expectedCents"] == 2000
    assert entry.event_metadata["depositId"] == deposit.id


def test_debt_submission_prefix(employee_user):
    deposit = deposit_service.record_deposit(
        employee=employee_user,
        amount_submitted_cents=700,
        notes="Collected from Dana",
        submission_type="debt",
    )
    assert deposit.notes == "[DEBT] Collected from Dana"
    assert deposit.submission_type == "debt"


@pytest.mark.parametrize("amount,notes,kind", [
    (0, "End of shift", "revenue"),
    (-100, "End of shift", "revenue"),
    (100, "shrt", "revenue"),
    (100, "     ", "revenue"),
    (100, "End of shift", "tips"),
    (100, 12345, "revenue"),
    (100, ["End of shift"], "revenue"),
])
def test_invalid_deposits_rejected(employee_user, amount, notes, kind):
    with pytest.raises(ValidationError):
        deposit_service.record_deposit(
            employee=employee_user,
            amount_submitted_cents=amount,
            notes=notes,
            submission_type=kind,
        )
    assert db.session.query(DailyDeposit).count() == 0


def test_note_length_is_configurable(app, employee_user):
    app.config["DEPOSIT_NOTE_MIN_LENGTH"] = 1
    deposit = deposit_service.record_deposit(employee=employee_user, amount_submitted_cents=100, notes="ok")
    assert deposit.notes == "[REVENUE] ok"


def test_shortage_is_logged(employee_user, make_product, caplog):
    product = make_product(unit_price_cents=1000)
    _sell(employee_user, product, 1)

    with caplog.at_level("WARNING"):
        deposit_service.record_deposit(employee=employee_user, amount_submitted_cents=400, notes="Short today")

    assert "outstanding cash shortage of 600 cents" in caplog.text


def test_deposit_api_scoping(client, employee_user, employee_headers, admin_headers, other_employee):
    deposit_service.record_deposit(employee=other_employee, amount_submitted_cents=900, notes="Evening shift")

    resp = client.post(
        "/api/deposits",
        json={"amountSubmitted": "12.34", "notes": "Morning shift"},
        headers=employee_headers,
    )
    assert resp.status_code == 201
    assert resp.get_json()["amountSubmittedCents"] == 1234

    mine = client.get("/api/deposits", headers=employee_headers).get_json()
    assert mine["count"] == 1
    assert mine["items"][0]["employeeId"] == employee_user.id

    # an employee cannot widen the scope
    scoped = client.get(f"/api/deposits?employeeId={other_employee.id}", headers=employee_headers).get_json()
    assert scoped["count"] == 1
    assert scoped["items"][0]["employeeId"] == employee_user.id

    everything = client.get("/api/deposits", headers=admin_headers).get_json()
    assert everything["count"] == 2


def test_deposit_api_rejects_bad_input(client, employee_headers):
    resp = client.post("/api/deposits", json={"amountSubmitted": "abc", "notes": "Morning shift"}, headers=employee_headers)
    assert resp.status_code == 400
    resp = client.post("/api/deposits", json={"notes": "Morning shift"}, headers=employee_headers)
    assert resp.status_code == 400
    resp = client.post("/api/deposits", json={"amountSubmitted": "5", "notes": 12345}, headers=employee_headers)
    assert resp.status_code == 400
    assert db.session.query(DailyDeposit).count() == 0
