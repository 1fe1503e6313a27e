from __future__ import annotations

from ..extensions import db
from pharmapos.time_utils import to_utc_z, utcnow

PRODUCT_ACTIVE = "active"
PRODUCT_ARCHIVED = "archived"


class Product(db.Model):
    """
    Catalog item (medicine or supply).

    Products are never physically removed: archiving flips status to
    "archived" so historical sales keep a referential name. Stock is
    decremented by the checkout transaction, never by a database trigger.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_status_name", "status", "name"),
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    generic_name = db.Column(db.String(255), nullable=False, default="")
    manufacturer = db.Column(db.String(255), nullable=False, default="")
    category = db.Column(db.String(128), nullable=False, default="")
    dosage_form = db.Column(db.String(64), nullable=False, default="")
    strength = db.Column(db.String(64), nullable=False, default="")
    barcode = db.Column(db.String(64), nullable=False, default="", index=True)
    sku = db.Column(db.String(64), nullable=False, default="", index=True)

    # Authoritative storage in cents (frontend may only format for display)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    wholesale_price_cents = db.Column(db.Integer, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=0)

    expiry_date = db.Column(db.Date, nullable=True)
    batch_number = db.Column(db.String(64), nullable=False, default="")
    location = db.Column(db.String(128), nullable=False, default="")
    country_origin = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)

    requires_prescription = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(16), nullable=False, default=PRODUCT_ACTIVE, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "genericName": self.generic_name,
            "manufacturer": self.manufacturer,
            "category": self.category,
            "dosageForm": self.dosage_form,
            "strength": self.strength,
            "barcode": self.barcode,
            "sku": self.sku,
            "unitPriceCents": self.unit_price_cents,
            "costPriceCents": self.cost_price_cents,
            "wholesalePriceCents": self.wholesale_price_cents,
            "stock": self.stock,
            "reorderLevel": self.reorder_level,
            "expiryDate": self.expiry_date.isoformat() if self.expiry_date else None,
            "batchNumber": self.batch_number,
            "location": self.location,
            "countryOrigin": self.country_origin,
            "description": self.description,
            "requiresPrescription": self.requires_prescription,
            "status": self.status,
            "versionId": self.version_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Wholesaler(db.Model):
    """
    Supplier the pharmacy buys from.

    balance_cents > 0 means the pharmacy owes the wholesaler (debt);
    balance_cents < 0 means the wholesaler holds credit for the pharmacy.
    """
    __tablename__ = "wholesalers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    contact_person = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    balance_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contactPerson": self.contact_person,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "balanceCents": self.balance_cents,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
