# Overview: Process-wide snapshot cache of the persisted collections.

"""
Application state store.

Holds one immutable tuple of records per collection. A collection is
reloaded from the database the first time it is read after its TTL has
elapsed or after a write service called invalidate() for it. Readers
always get a whole tuple; they never see a half-refreshed list.

The store is built by create_app() and kept in app.extensions; use
get_state_store() inside a request or app context.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import AuditLog, Customer, DailyDeposit, Product, Sale, Wholesaler
from ..models.inventory import PRODUCT_ACTIVE
from ..records import (
    AuditRecord,
    CustomerRecord,
    DepositRecord,
    ProductRecord,
    SaleRecord,
    WholesalerRecord,
)

EXTENSION_KEY = "pharmapos.state"

PRODUCTS = "products"
SALES = "sales"
AUDIT_LOGS = "audit_logs"
CUSTOMERS = "customers"
DEPOSITS = "deposits"
WHOLESALERS = "wholesalers"

COLLECTIONS = (PRODUCTS, SALES, AUDIT_LOGS, CUSTOMERS, DEPOSITS, WHOLESALERS)


def load_products() -> tuple[ProductRecord, ...]:
    rows = (
        db.session.query(Product)
        .filter(Product.status == PRODUCT_ACTIVE)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return tuple(ProductRecord.from_model(p) for p in rows)


def load_sales() -> tuple[SaleRecord, ...]:
    rows = db.session.query(Sale).order_by(Sale.timestamp.desc(), Sale.id.desc()).all()
    return tuple(SaleRecord.from_model(s) for s in rows)


def load_audit_logs() -> tuple[AuditRecord, ...]:
    rows = db.session.query(AuditLog).order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).all()
    return tuple(AuditRecord.from_model(a) for a in rows)


def load_customers() -> tuple[CustomerRecord, ...]:
    rows = db.session.query(Customer).order_by(Customer.name.asc(), Customer.id.asc()).all()
    return tuple(CustomerRecord.from_model(c) for c in rows)


def load_deposits() -> tuple[DepositRecord, ...]:
    rows = (
        db.session.query(DailyDeposit)
        .order_by(DailyDeposit.created_at.desc(), DailyDeposit.id.desc())
        .all()
    )
    return tuple(DepositRecord.from_model(d) for d in rows)


def load_wholesalers() -> tuple[WholesalerRecord, ...]:
    rows = db.session.query(Wholesaler).order_by(Wholesaler.name.asc(), Wholesaler.id.asc()).all()
    return tuple(WholesalerRecord.from_model(w) for w in rows)


DEFAULT_LOADERS: dict[str, Callable[[], tuple]] = {
    PRODUCTS: load_products,
    SALES: load_sales,
    AUDIT_LOGS: load_audit_logs,
    CUSTOMERS: load_customers,
    DEPOSITS: load_deposits,
    WHOLESALERS: load_wholesalers,
}


@dataclass(frozen=True)
class CacheEntry:
    value: tuple
    expires_at: float


@dataclass(frozen=True)
class Snapshot:
    """Every collection as of one read."""
    products: tuple[ProductRecord, ...]
    sales: tuple[SaleRecord, ...]
    audit_logs: tuple[AuditRecord, ...]
    customers: tuple[CustomerRecord, ...]
    deposits: tuple[DepositRecord, ...]
    wholesalers: tuple[WholesalerRecord, ...]


class StateStore:
    """TTL snapshot cache keyed by collection name."""

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        loaders: dict[str, Callable[[], tuple]] | None = None,
        now: Callable[[], float] | None = None,
    ) -> None:
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self._loaders = dict(loaders or DEFAULT_LOADERS)
        self._now = now or time.monotonic
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def _loader(self, name: str) -> Callable[[], tuple]:
        try:
            return self._loaders[name]
        except KeyError:
            raise KeyError(f"Unknown collection: {name}") from None

    def get(self, name: str) -> tuple:
        loader = self._loader(name)
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None and entry.expires_at > self._now():
                return entry.value
            value = tuple(loader())
            self._entries[name] = CacheEntry(value=value, expires_at=self._now() + self.ttl_seconds)
            return value

    def invalidate(self, *names: str) -> None:
        with self._lock:
            for name in names:
                self._loader(name)
                self._entries.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(**{name: self.get(name) for name in COLLECTIONS})

    # Convenience readers

    def products(self) -> tuple[ProductRecord, ...]:
        return self.get(PRODUCTS)

    def sales(self) -> tuple[SaleRecord, ...]:
        return self.get(SALES)

    def audit_logs(self) -> tuple[AuditRecord, ...]:
        return self.get(AUDIT_LOGS)

    def customers(self) -> tuple[CustomerRecord, ...]:
        return self.get(CUSTOMERS)

    def deposits(self) -> tuple[DepositRecord, ...]:
        return self.get(DEPOSITS)

    def wholesalers(self) -> tuple[WholesalerRecord, ...]:
        return self.get(WHOLESALERS)


def init_state_store(app) -> StateStore:
    store = StateStore(ttl_seconds=app.config.get("STATE_CACHE_TTL_SECONDS", 30))
    app.extensions[EXTENSION_KEY] = store
    return store


def get_state_store() -> StateStore:
    return current_app.extensions[EXTENSION_KEY]


def invalidate(*names: Any) -> None:
    """Drop snapshots after a committed write."""
    get_state_store().invalidate(*names)
