# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products Service

- Archiving is a soft delete (status -> archived). Archived products drop
  out of active listings but keep their id, so past sales still resolve.
- Every mutation appends an audit entry in the same transaction.
- A stock change made through an update is logged as stock_adjustment.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, User
from ..models.audit import (
    ACTION_PRODUCT_ADDED,
    ACTION_PRODUCT_ARCHIVED,
    ACTION_PRODUCT_UPDATED,
    ACTION_STOCK_ADJUSTMENT,
)
from ..models.inventory import PRODUCT_ACTIVE, PRODUCT_ARCHIVED
from ..validation import ConflictError, NotFoundError, ValidationError
from . import audit_service, state_store
from .concurrency import lock_for_update, run_with_retry

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "generic_name",
    "manufacturer",
    "category",
    "dosage_form",
    "strength",
    "barcode",
    "sku",
    "unit_price_cents",
    "cost_price_cents",
    "wholesale_price_cents",
    "stock",
    "reorder_level",
    "expiry_date",
    "batch_number",
    "location",
    "country_origin",
    "description",
    "requires_prescription",
}


def apply_product_patch(p: Product, patch: dict) -> list[str]:
    """Apply allowed fields; returns the column names that actually changed."""
    changed = []
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        if getattr(p, k) != v:
            setattr(p, k, v)
            changed.append(k)
    return changed


def _ensure_unique_sku(sku: str | None, *, exclude_id: int | None = None) -> None:
    if not sku:
        return
    query = db.session.query(Product).filter(
        Product.sku == sku,
        Product.status == PRODUCT_ACTIVE,
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("SKU already exists.")


def get_product(product_id: int, *, include_archived: bool = False) -> Product:
    p = db.session.query(Product).filter_by(id=product_id).first()
    if not p or (p.status != PRODUCT_ACTIVE and not include_archived):
        raise NotFoundError("Product not found")
    return p


def create_product(*, patch: dict, actor: User) -> Product:
    """
    Create product from a validated patch dict.

    Raises:
        ValidationError: name missing
        ConflictError: SKU already used by an active product
    """
    if not (patch.get("name") or "").strip():
        raise ValidationError("name is required")
    _ensure_unique_sku(patch.get("sku"))

    p = Product(status=PRODUCT_ACTIVE)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.flush()

    audit_service.record_event(
        user=actor,
        action=ACTION_PRODUCT_ADDED,
        details=f"Added product {p.name} (stock {p.stock or 0})",
        metadata={"productId": p.id, "sku": p.sku, "stock": p.stock or 0},
    )

    db.session.commit()
    state_store.invalidate(state_store.PRODUCTS, state_store.AUDIT_LOGS)
    return p


def update_product(*, product_id: int, patch: dict, actor: User) -> Product:
    """
    Update an active product.

    Raises NotFoundError, ConflictError.
    """
    def _op():
        p = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not p or p.status != PRODUCT_ACTIVE:
            raise NotFoundError("Product not found")

        if "sku" in patch:
            _ensure_unique_sku(patch["sku"], exclude_id=p.id)
        if "name" in patch and not (patch["name"] or "").strip():
            raise ValidationError("name cannot be blank")

        old_stock = p.stock
        changed = apply_product_patch(p, patch)
        if not changed:
            return p

        if "stock" in changed:
            audit_service.record_event(
                user=actor,
                action=ACTION_STOCK_ADJUSTMENT,
                details=f"Stock for {p.name} changed from {old_stock} to {p.stock}",
                metadata={"productId": p.id, "oldStock": old_stock, "newStock": p.stock},
            )
        other = [k for k in changed if k != "stock"]
        if other:
            audit_service.record_event(
                user=actor,
                action=ACTION_PRODUCT_UPDATED,
                details=f"Updated product {p.name}",
                metadata={"productId": p.id, "fields": sorted(other)},
            )

        db.session.commit()
        return p

    p = run_with_retry(_op)
    state_store.invalidate(state_store.PRODUCTS, state_store.AUDIT_LOGS)
    return p


def archive_product(*, product_id: int, actor: User) -> Product:
    """
    Soft-delete a product.

    Archiving an already archived product is a no-op. Raises NotFoundError
    for unknown ids.
    """
    p = db.session.query(Product).filter_by(id=product_id).first()
    if not p:
        raise NotFoundError("Product not found")

    if p.status == PRODUCT_ARCHIVED:
        return p

    p.status = PRODUCT_ARCHIVED
    audit_service.record_event(
        user=actor,
        action=ACTION_PRODUCT_ARCHIVED,
        details=f"Archived product {p.name}",
        metadata={"productId": p.id, "sku": p.sku},
    )

    db.session.commit()
    state_store.invalidate(state_store.PRODUCTS, state_store.AUDIT_LOGS)
    current_app.logger.info("Product %s archived by user %s", p.id, actor.id)
    return p
