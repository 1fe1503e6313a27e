from __future__ import annotations

from ..extensions import db
from pharmapos.time_utils import to_utc_z, utcnow

SUBMISSION_REVENUE = "revenue"
SUBMISSION_DEBT = "debt"
SUBMISSION_TYPES = (SUBMISSION_REVENUE, SUBMISSION_DEBT)


class DailyDeposit(db.Model):
    """
    One bank cash submission by an employee.

    cash_revenue_cents is the expected cash figure the employee saw when
    submitting; reconciliation recomputes expected cash from sales and audit
    logs and only trusts amount_submitted_cents from this table.

    IMMUTABLE: Append-only. Never updated or deleted.
    """
    __tablename__ = "daily_deposits"
    __table_args__ = (
        db.Index("ix_daily_deposits_date", "date"),
        db.Index("ix_daily_deposits_employee_date", "employee_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Business day of the submission ("YYYY-MM-DD")
    date = db.Column(db.String(10), nullable=False)

    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    employee_name = db.Column(db.String(128), nullable=False)

    cash_revenue_cents = db.Column(db.Integer, nullable=False, default=0)
    amount_submitted_cents = db.Column(db.Integer, nullable=False)

    submission_type = db.Column(db.String(16), nullable=False, default=SUBMISSION_REVENUE)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "cashRevenueCents": self.cash_revenue_cents,
            "amountSubmittedCents": self.amount_submitted_cents,
            "submissionType": self.submission_type,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }
