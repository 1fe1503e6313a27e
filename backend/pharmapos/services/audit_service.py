# Overview: Service-layer operations for the activity audit log; append-only writes.

"""
Audit log invariants

- Append-only. Rows are never updated or deleted.
- Entries are written inside the same DB transaction as the change they
  describe; the caller decides when to commit.
- user_name is captured at write time.
"""

from __future__ import annotations

from typing import Any, Optional

from ..extensions import db
from ..models import AuditLog, User
from ..models.audit import AUDIT_ACTIONS


class AuditError(Exception):
    """Raised when an audit entry cannot be built."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def record_event(
    *,
    user: Optional[User],
    action: str,
    details: str,
    metadata: Optional[dict[str, Any]] = None,
    user_name: Optional[str] = None,
    commit: bool = False,
) -> AuditLog:
    """
    Append one audit entry.

    user may be None for system actions (CLI bootstrap); user_name then
    defaults to "System".
    """
    if action not in AUDIT_ACTIONS:
        raise AuditError(f"Unknown audit action: {action}", details={"action": action})

    log = AuditLog(
        user_id=user.id if user is not None else None,
        user_name=user_name or (user.name if user is not None else "System"),
        action=action,
        details=details or "",
        event_metadata=dict(metadata) if metadata else None,
    )
    db.session.add(log)
    db.session.flush()

    if commit:
        db.session.commit()

    return log
