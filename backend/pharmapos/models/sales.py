from __future__ import annotations

from ..extensions import db
from pharmapos.time_utils import to_utc_z, utcnow

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_MOBILE = "mobile banking"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_MOBILE)


class Sale(db.Model):
    """
    One immutable sale line.

    A checkout with several distinct products writes one row per product,
    all sharing the same checkout_ref. Rows are never updated after insert.

    product_name and customer_name are captured at sale time so history
    still renders after a product is archived or a customer renamed.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_timestamp", "timestamp"),
        db.Index("ix_sales_employee_timestamp", "employee_id", "timestamp"),
        db.Index("ix_sales_payment_timestamp", "payment_method", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    checkout_ref = db.Column(db.String(36), nullable=False, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    employee_name = db.Column(db.String(128), nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    prescription_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product")
    customer = db.relationship("Customer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "checkoutRef": self.checkout_ref,
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "unitPriceCents": self.unit_price_cents,
            "totalAmountCents": self.total_amount_cents,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "paymentMethod": self.payment_method,
            "prescriptionNumber": self.prescription_number,
            "notes": self.notes,
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "timestamp": to_utc_z(self.timestamp),
        }
