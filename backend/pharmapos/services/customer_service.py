# Overview: Service-layer operations for customers and their running debt balance.

"""
Customer debt

debt_amount_cents > 0 means the customer owes the pharmacy; < 0 is store
credit. update_customer_debt is the only way a debt payment is recorded,
and the debt_updated audit entry it writes (metadata paymentAmountCents)
is what cash reconciliation counts as cash collected that day.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Customer, User
from ..models.audit import ACTION_CUSTOMER_ADDED, ACTION_DEBT_UPDATED
from ..money import MAX_AMOUNT_CENTS, format_cents
from ..validation import NotFoundError, ValidationError, clean_text
from pharmapos.time_utils import utcnow
from . import audit_service, state_store
from .concurrency import lock_for_update, run_with_retry


def create_customer(*, name: str, actor: User, phone: str | None = None, debt_amount_cents: int = 0) -> Customer:
    name = clean_text(name, "name")
    if not name:
        raise ValidationError("Customer name is required")
    if abs(debt_amount_cents) > MAX_AMOUNT_CENTS:
        raise ValidationError("Debt amount is too large")

    customer = Customer(
        name=name,
        phone=clean_text(phone, "phone"),
        debt_amount_cents=debt_amount_cents,
    )
    db.session.add(customer)
    db.session.flush()

    audit_service.record_event(
        user=actor,
        action=ACTION_CUSTOMER_ADDED,
        details=f"Added customer {customer.name} with debt ${format_cents(debt_amount_cents)}",
        metadata={"customerId": customer.id, "debtAmountCents": debt_amount_cents},
    )

    db.session.commit()
    state_store.invalidate(state_store.CUSTOMERS, state_store.AUDIT_LOGS)
    return customer


def debt_update_details(name: str, payment_cents: int, new_debt_cents: int) -> str:
    if payment_cents > 0:
        return f"Customer {name} paid ${format_cents(payment_cents)}. New debt: ${format_cents(new_debt_cents)}"
    return f"Updated debt for {name} to ${format_cents(new_debt_cents)}"


def update_customer_debt(
    *,
    customer_id: int,
    actor: User,
    payment_cents: int = 0,
    additional_debt_cents: int = 0,
) -> Customer:
    """
    new_debt = current - payment + additional, applied under a row lock.

    Both amounts must be >= 0 and at least one must be positive. A payment
    larger than the debt leaves the customer with credit.
    """
    if payment_cents < 0 or additional_debt_cents < 0:
        raise ValidationError("Amounts cannot be negative")
    if payment_cents == 0 and additional_debt_cents == 0:
        raise ValidationError("Enter a payment or an additional debt amount")

    def _op():
        customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
        if not customer:
            raise NotFoundError("Customer not found")

        old_debt = customer.debt_amount_cents
        new_debt = old_debt - payment_cents + additional_debt_cents
        if abs(new_debt) > MAX_AMOUNT_CENTS:
            raise ValidationError("Resulting debt is too large")

        customer.debt_amount_cents = new_debt
        customer.updated_at = utcnow()

        audit_service.record_event(
            user=actor,
            action=ACTION_DEBT_UPDATED,
            details=debt_update_details(customer.name, payment_cents, new_debt),
            metadata={
                "customerId": customer.id,
                "oldDebtCents": old_debt,
                "newDebtCents": new_debt,
                "paymentAmountCents": payment_cents,
                "additionalDebtCents": additional_debt_cents,
            },
        )

        db.session.commit()
        return customer

    customer = run_with_retry(_op)
    state_store.invalidate(state_store.CUSTOMERS, state_store.AUDIT_LOGS)
    return customer
