from __future__ import annotations

from ..extensions import db
from pharmapos.time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """
    Customer with a running debt balance.

    debt_amount_cents > 0: the customer owes the pharmacy.
    debt_amount_cents < 0: the pharmacy owes the customer (store credit).

    The balance only changes through customer_service.update_customer_debt,
    which also writes the debt_updated audit entry reconciliation reads.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False, default="")
    debt_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "debtAmountCents": self.debt_amount_cents,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "versionId": self.version_id,
        }
