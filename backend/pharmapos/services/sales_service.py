# Overview: Service-layer operations for sales; atomic checkout and sales history queries.

"""
Checkout invariants

- Validation (payment method, prescription number, stock) happens before
  any write; a rejected checkout leaves no rows behind.
- One checkout is one transaction: product rows are locked, stock is
  re-checked and decremented, one Sale row per cart line is inserted and
  one "sale" audit entry per line is appended. Commit all or nothing.
- total_amount_cents == unit_price_cents * quantity for every row.
- Lines of one checkout share checkout_ref.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Customer, Product, Sale, User
from ..models.audit import ACTION_SALE
from ..models.inventory import PRODUCT_ACTIVE
from ..models.sales import PAYMENT_METHODS
from ..money import format_cents
from pharmapos.time_utils import month_range
from . import audit_service, state_store
from .cart import CHECKOUT_OPEN, CheckoutSession
from .concurrency import lock_for_update, run_with_retry


class CheckoutError(Exception):
    """Raised for checkout errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class CheckoutLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class CheckoutResult:
    checkout_ref: str
    sales: list

    @property
    def total_amount_cents(self) -> int:
        return sum(s.total_amount_cents for s in self.sales)

    def to_dict(self) -> dict:
        return {
            "checkoutRef": self.checkout_ref,
            "totalAmountCents": self.total_amount_cents,
            "sales": [s.to_dict() for s in self.sales],
        }


def _optional_text(value, field: str) -> str | None:
    """Strip a free-text field; None and blank become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise CheckoutError(f"{field} must be a string", details={"field": field})
    return value.strip() or None


def validate_checkout(
    *,
    lines: list[CheckoutLine],
    payment_method: str | None,
    prescription_number: str | None,
    requires_prescription: bool,
    notes: str | None = None,
    customer_id: int | None = None,
) -> None:
    """Input checks that must pass before anything is written."""
    prescription_number = _optional_text(prescription_number, "prescriptionNumber")
    _optional_text(notes, "notes")
    if customer_id is not None and (isinstance(customer_id, bool) or not isinstance(customer_id, int)):
        raise CheckoutError("customerId must be an integer", details={"customerId": customer_id})
    if not lines:
        raise CheckoutError("Cart is empty")
    for line in lines:
        if line.quantity < 1:
            raise CheckoutError(
                "Quantity must be at least 1",
                details={"productId": line.product_id, "quantity": line.quantity},
            )
    if not payment_method:
        raise CheckoutError("Payment method is required")
    if payment_method not in PAYMENT_METHODS:
        raise CheckoutError(
            f"Invalid payment method: {payment_method}",
            details={"allowed": list(PAYMENT_METHODS)},
        )
    if requires_prescription and not prescription_number:
        raise CheckoutError("Prescription number is required for prescription items")


def _merge_lines(lines: list[CheckoutLine]) -> dict[int, int]:
    merged: dict[int, int] = {}
    for line in lines:
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return merged


def record_checkout(
    *,
    employee: User,
    lines: list[CheckoutLine],
    payment_method: str,
    prescription_number: str | None = None,
    notes: str | None = None,
    customer_id: int | None = None,
) -> CheckoutResult:
    """
    Write a whole checkout in one transaction.

    Raises CheckoutError (nothing written) when a product is missing or
    archived, when stock is insufficient, or when a prescription item has
    no prescription number.
    """
    quantities = _merge_lines(lines)
    prescription_number = _optional_text(prescription_number, "prescriptionNumber")
    notes = _optional_text(notes, "notes")

    def _op():
        customer = None
        if customer_id is not None:
            customer = db.session.query(Customer).filter_by(id=customer_id).first()
            if not customer:
                raise CheckoutError("Customer not found", details={"customerId": customer_id})

        products: dict[int, Product] = {}
        missing = []
        insufficient = []
        for product_id, qty in quantities.items():
            product = lock_for_update(
                db.session.query(Product).filter_by(id=product_id)
            ).first()
            if not product or product.status != PRODUCT_ACTIVE:
                missing.append(product_id)
                continue
            if product.stock < qty:
                insufficient.append({
                    "productId": product_id,
                    "productName": product.name,
                    "requested": qty,
                    "available": product.stock,
                })
            products[product_id] = product

        if missing:
            raise CheckoutError("Product not found", details={"productIds": missing})
        if insufficient:
            raise CheckoutError("Insufficient stock", details={"items": insufficient})
        if not prescription_number and any(p.requires_prescription for p in products.values()):
            raise CheckoutError("Prescription number is required for prescription items")

        checkout_ref = str(uuid.uuid4())
        sales = []
        for product_id, qty in quantities.items():
            product = products[product_id]
            product.stock -= qty

            sale = Sale(
                checkout_ref=checkout_ref,
                product_id=product.id,
                product_name=product.name,
                quantity=qty,
                unit_price_cents=product.unit_price_cents,
                total_amount_cents=product.unit_price_cents * qty,
                employee_id=employee.id,
                employee_name=employee.name,
                payment_method=payment_method,
                prescription_number=prescription_number,
                notes=notes,
                customer_id=customer.id if customer else None,
                customer_name=customer.name if customer else None,
            )
            db.session.add(sale)
            db.session.flush()
            sales.append(sale)

            audit_service.record_event(
                user=employee,
                action=ACTION_SALE,
                details=f"Sold {qty} x {product.name} for ${format_cents(sale.total_amount_cents)} ({payment_method})",
                metadata={
                    "saleId": sale.id,
                    "checkoutRef": checkout_ref,
                    "productId": product.id,
                    "quantity": qty,
                    "totalAmountCents": sale.total_amount_cents,
                    "paymentMethod": payment_method,
                },
            )

        db.session.commit()
        return CheckoutResult(checkout_ref=checkout_ref, sales=sales)

    result = run_with_retry(_op)

    state_store.invalidate(state_store.SALES, state_store.PRODUCTS, state_store.AUDIT_LOGS)
    current_app.logger.info(
        "Checkout %s committed by user %s: %d line(s), %s cents (%s)",
        result.checkout_ref,
        employee.id,
        len(result.sales),
        result.total_amount_cents,
        payment_method,
    )
    return result


def checkout(
    session: CheckoutSession,
    *,
    employee: User,
    payment_method: str | None,
    prescription_number: str | None = None,
    notes: str | None = None,
    customer_id: int | None = None,
) -> CheckoutResult:
    """
    Drive a cashier's checkout session through submission.

    Validation failures leave the session in checkout_open. Failures after
    submission starts move it to failed and keep the cart.
    """
    if session.state != CHECKOUT_OPEN:
        session.open_checkout()

    lines = [
        CheckoutLine(product_id=line.product.id, quantity=line.quantity)
        for line in session.cart.lines
    ]
    validate_checkout(
        lines=lines,
        payment_method=payment_method,
        prescription_number=prescription_number,
        requires_prescription=session.cart.requires_prescription,
        notes=notes,
        customer_id=customer_id,
    )

    session.begin_submit()
    try:
        result = record_checkout(
            employee=employee,
            lines=lines,
            payment_method=payment_method,
            prescription_number=prescription_number,
            notes=notes,
            customer_id=customer_id,
        )
    except CheckoutError as e:
        session.fail(str(e))
        raise
    except SQLAlchemyError:
        session.fail("Checkout could not be saved")
        raise
    except Exception:
        session.fail("Checkout failed")
        raise

    session.complete(result.checkout_ref)
    return result


def sales_in_range(start: datetime, end: datetime) -> list[Sale]:
    """Sales with start <= timestamp <= end, newest first."""
    return (
        db.session.query(Sale)
        .filter(Sale.timestamp >= start, Sale.timestamp <= end)
        .order_by(Sale.timestamp.desc(), Sale.id.desc())
        .all()
    )


def sales_for_month(year: int, month: int) -> list[Sale]:
    start, end = month_range(year, month)
    return sales_in_range(start, end)
