from __future__ import annotations

from ..extensions import db
from pharmapos.time_utils import to_utc_z, utcnow

ACTION_SALE = "sale"
ACTION_STOCK_ADJUSTMENT = "stock_adjustment"
ACTION_PRODUCT_ADDED = "product_added"
ACTION_PRODUCT_UPDATED = "product_updated"
ACTION_PRODUCT_ARCHIVED = "product_archived"
ACTION_LOGIN = "login"
ACTION_LOGOUT = "logout"
ACTION_CUSTOMER_ADDED = "customer_added"
ACTION_DEBT_UPDATED = "debt_updated"
ACTION_DEPOSIT_RECORDED = "deposit_recorded"
ACTION_WHOLESALER_ADDED = "wholesaler_added"
ACTION_WHOLESALER_UPDATED = "wholesaler_updated"
ACTION_WHOLESALER_DELETED = "wholesaler_deleted"

AUDIT_ACTIONS = (
    ACTION_SALE,
    ACTION_STOCK_ADJUSTMENT,
    ACTION_PRODUCT_ADDED,
    ACTION_PRODUCT_UPDATED,
    ACTION_PRODUCT_ARCHIVED,
    ACTION_LOGIN,
    ACTION_LOGOUT,
    ACTION_CUSTOMER_ADDED,
    ACTION_DEBT_UPDATED,
    ACTION_DEPOSIT_RECORDED,
    ACTION_WHOLESALER_ADDED,
    ACTION_WHOLESALER_UPDATED,
    ACTION_WHOLESALER_DELETED,
)


class AuditLog(db.Model):
    """
    Append-only activity log.

    user_name is denormalized so the log stays readable if a user is
    deactivated. event_metadata carries structured data; for debt_updated
    entries it holds paymentAmountCents, which is the only source
    reconciliation uses for cash collected against customer debt.

    IMMUTABLE: Never update or delete.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_timestamp", "timestamp"),
        db.Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    user_name = db.Column(db.String(128), nullable=False)
    action = db.Column(db.String(32), nullable=False)
    details = db.Column(db.Text, nullable=False, default="")

    # "metadata" is reserved on declarative models
    event_metadata = db.Column("metadata", db.JSON, nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "action": self.action,
            "details": self.details,
            "metadata": self.event_metadata,
            "timestamp": to_utc_z(self.timestamp),
        }
