# Overview: Service-layer operations for wholesaler (supplier) records.

from __future__ import annotations

from ..extensions import db
from ..models import User, Wholesaler
from ..models.audit import (
    ACTION_WHOLESALER_ADDED,
    ACTION_WHOLESALER_DELETED,
    ACTION_WHOLESALER_UPDATED,
)
from ..validation import NotFoundError, ValidationError
from . import audit_service, state_store

WHOLESALER_MUTABLE_FIELDS = {"name", "contact_person", "phone", "email", "address", "balance_cents"}


def _apply(w: Wholesaler, patch: dict) -> list[str]:
    changed = []
    for k, v in patch.items():
        if k in WHOLESALER_MUTABLE_FIELDS and getattr(w, k) != v:
            setattr(w, k, v)
            changed.append(k)
    return changed


def _invalidate() -> None:
    state_store.invalidate(state_store.WHOLESALERS, state_store.AUDIT_LOGS)


def create_wholesaler(*, patch: dict, actor: User) -> Wholesaler:
    if not (patch.get("name") or "").strip():
        raise ValidationError("name is required")

    w = Wholesaler(balance_cents=0)
    _apply(w, patch)
    db.session.add(w)
    db.session.flush()

    audit_service.record_event(
        user=actor,
        action=ACTION_WHOLESALER_ADDED,
        details=f"Added wholesaler {w.name}",
        metadata={"wholesalerId": w.id},
    )
    db.session.commit()
    _invalidate()
    return w


def update_wholesaler(*, wholesaler_id: int, patch: dict, actor: User) -> Wholesaler:
    w = db.session.query(Wholesaler).filter_by(id=wholesaler_id).first()
    if not w:
        raise NotFoundError("Wholesaler not found")
    if "name" in patch and not (patch["name"] or "").strip():
        raise ValidationError("name cannot be blank")

    changed = _apply(w, patch)
    if not changed:
        return w

    audit_service.record_event(
        user=actor,
        action=ACTION_WHOLESALER_UPDATED,
        details=f"Updated wholesaler {w.name}",
        metadata={"wholesalerId": w.id, "fields": sorted(changed)},
    )
    db.session.commit()
    _invalidate()
    return w


def delete_wholesaler(*, wholesaler_id: int, actor: User) -> None:
    """Hard delete; the audit entry keeps the name."""
    w = db.session.query(Wholesaler).filter_by(id=wholesaler_id).first()
    if not w:
        raise NotFoundError("Wholesaler not found")

    audit_service.record_event(
        user=actor,
        action=ACTION_WHOLESALER_DELETED,
        details=f"Deleted wholesaler {w.name}",
        metadata={"wholesalerId": w.id, "balanceCents": w.balance_cents},
    )
    db.session.delete(w)
    db.session.commit()
    _invalidate()
