# Overview: Immutable snapshot records the state store hands to aggregation code.

"""
Frozen, DB-detached copies of the persisted entities.

Aggregation, filtering and export code only ever sees these records, never
live ORM instances, so it can run outside a session and be unit tested
with plain constructors.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pharmapos.time_utils import to_utc_z


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_jsonable(v) for v in value]
    return value


class _Record:
    def to_dict(self) -> dict:
        return {_camel(f.name): _jsonable(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class ProductRecord(_Record):
    id: int
    name: str
    generic_name: str = ""
    manufacturer: str = ""
    category: str = ""
    dosage_form: str = ""
    strength: str = ""
    barcode: str = ""
    sku: str = ""
    unit_price_cents: int = 0
    cost_price_cents: int = 0
    wholesale_price_cents: int = 0
    stock: int = 0
    reorder_level: int = 0
    expiry_date: Optional[date] = None
    batch_number: str = ""
    location: str = ""
    country_origin: Optional[str] = None
    description: Optional[str] = None
    requires_prescription: bool = False
    status: str = "active"
    version_id: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.reorder_level

    @classmethod
    def from_model(cls, p) -> "ProductRecord":
        return cls(
            id=p.id,
            name=p.name,
            generic_name=p.generic_name or "",
            manufacturer=p.manufacturer or "",
            category=p.category or "",
            dosage_form=p.dosage_form or "",
            strength=p.strength or "",
            barcode=p.barcode or "",
            sku=p.sku or "",
            unit_price_cents=p.unit_price_cents,
            cost_price_cents=p.cost_price_cents,
            wholesale_price_cents=p.wholesale_price_cents,
            stock=p.stock,
            reorder_level=p.reorder_level,
            expiry_date=p.expiry_date,
            batch_number=p.batch_number or "",
            location=p.location or "",
            country_origin=p.country_origin,
            description=p.description,
            requires_prescription=bool(p.requires_prescription),
            status=p.status,
            version_id=p.version_id,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )


@dataclass(frozen=True)
class SaleRecord(_Record):
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price_cents: int
    total_amount_cents: int
    employee_id: int
    employee_name: str
    payment_method: str
    timestamp: datetime
    prescription_number: Optional[str] = None
    notes: Optional[str] = None
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    checkout_ref: Optional[str] = None

    @classmethod
    def from_model(cls, s) -> "SaleRecord":
        return cls(
            id=s.id,
            product_id=s.product_id,
            product_name=s.product_name,
            quantity=s.quantity,
            unit_price_cents=s.unit_price_cents,
            total_amount_cents=s.total_amount_cents,
            employee_id=s.employee_id,
            employee_name=s.employee_name,
            payment_method=s.payment_method,
            timestamp=s.timestamp,
            prescription_number=s.prescription_number,
            notes=s.notes,
            customer_id=s.customer_id,
            customer_name=s.customer_name,
            checkout_ref=s.checkout_ref,
        )


@dataclass(frozen=True)
class AuditRecord(_Record):
    id: int
    user_id: Optional[int]
    user_name: str
    action: str
    details: str
    timestamp: datetime
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    @classmethod
    def from_model(cls, log) -> "AuditRecord":
        return cls(
            id=log.id,
            user_id=log.user_id,
            user_name=log.user_name,
            action=log.action,
            details=log.details or "",
            timestamp=log.timestamp,
            metadata=MappingProxyType(dict(log.event_metadata or {})),
        )


@dataclass(frozen=True)
class DepositRecord(_Record):
    id: int
    date: str
    employee_id: int
    employee_name: str
    amount_submitted_cents: int
    cash_revenue_cents: int = 0
    submission_type: str = "revenue"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, d) -> "DepositRecord":
        return cls(
            id=d.id,
            date=d.date,
            employee_id=d.employee_id,
            employee_name=d.employee_name,
            amount_submitted_cents=d.amount_submitted_cents,
            cash_revenue_cents=d.cash_revenue_cents,
            submission_type=d.submission_type,
            notes=d.notes,
            created_at=d.created_at,
        )


@dataclass(frozen=True)
class CustomerRecord(_Record):
    id: int
    name: str
    phone: str = ""
    debt_amount_cents: int = 0
    version_id: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def balance_label(self) -> str:
        if self.debt_amount_cents > 0:
            return "Owed to Pharmacy"
        if self.debt_amount_cents < 0:
            return "Customer Credit"
        return "Balanced"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["balanceLabel"] = self.balance_label
        return data

    @classmethod
    def from_model(cls, c) -> "CustomerRecord":
        return cls(
            id=c.id,
            name=c.name,
            phone=c.phone or "",
            debt_amount_cents=c.debt_amount_cents,
            version_id=c.version_id,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )


@dataclass(frozen=True)
class WholesalerRecord(_Record):
    id: int
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    balance_cents: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, w) -> "WholesalerRecord":
        return cls(
            id=w.id,
            name=w.name,
            contact_person=w.contact_person,
            phone=w.phone,
            email=w.email,
            address=w.address,
            balance_cents=w.balance_cents,
            created_at=w.created_at,
            updated_at=w.updated_at,
        )
