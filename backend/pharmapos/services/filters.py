# Overview: Search, facet and date-preset filtering over snapshot records.

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from ..records import AuditRecord, CustomerRecord, ProductRecord, SaleRecord, WholesalerRecord
from pharmapos.time_utils import days_ago, start_of_day, utcnow

STOCK_LOW = "low"
STOCK_NORMAL = "normal"

PRESET_ALL = "all"
PRESET_TODAY = "today"
PRESET_WEEK = "week"
PRESET_MONTH = "month"

SALES_DATE_PRESETS = (PRESET_ALL, PRESET_TODAY, PRESET_WEEK, PRESET_MONTH)
AUDIT_DATE_PRESETS = (PRESET_ALL, PRESET_TODAY, PRESET_WEEK)

LOW_STOCK_LIMIT = 5
EXPIRY_URGENT_DAYS = 30


def _matches(term: str, *values: Optional[str]) -> bool:
    return any(term in (v or "").lower() for v in values)


def _norm_term(search: Optional[str]) -> str:
    return (search or "").strip().lower()


def _naive(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def preset_start(preset: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Lower bound for a date preset; None means no bound."""
    if not preset or preset == PRESET_ALL:
        return None
    if preset == PRESET_TODAY:
        return start_of_day(now)
    if preset == PRESET_WEEK:
        return days_ago(7, now)
    if preset == PRESET_MONTH:
        return days_ago(30, now)
    raise ValueError(f"Unknown date range: {preset}")


# Products

def filter_products(
    products: Iterable[ProductRecord],
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    stock: Optional[str] = None,
) -> list[ProductRecord]:
    """
    search matches name, generic name, SKU or barcode (case-insensitive).
    stock is "low" (stock <= reorder level) or "normal".
    """
    term = _norm_term(search)
    result = []
    for p in products:
        if term and not _matches(term, p.name, p.generic_name, p.sku, p.barcode):
            continue
        if category and category != PRESET_ALL and p.category != category:
            continue
        if stock == STOCK_LOW and not p.is_low_stock:
            continue
        if stock == STOCK_NORMAL and p.is_low_stock:
            continue
        result.append(p)
    return result


def product_categories(products: Iterable[ProductRecord]) -> list[str]:
    return sorted({p.category for p in products if p.category})


def low_stock(products: Iterable[ProductRecord], limit: Optional[int] = LOW_STOCK_LIMIT) -> list[ProductRecord]:
    """Products at or below reorder level, lowest stock first."""
    items = sorted((p for p in products if p.is_low_stock), key=lambda p: (p.stock, p.name))
    return items if limit is None else items[:limit]


def expiring_soon(
    products: Iterable[ProductRecord],
    *,
    today: Optional[date] = None,
    window_days: int = 60,
) -> list[dict]:
    """
    Products expiring after today and within window_days, soonest first.

    Each entry is the product dict plus daysRemaining and urgent
    (daysRemaining <= 30).
    """
    today = today or utcnow().date()
    horizon = today + timedelta(days=window_days)
    rows = []
    for p in products:
        if p.expiry_date is None:
            continue
        if today < p.expiry_date <= horizon:
            remaining = (p.expiry_date - today).days
            data = p.to_dict()
            data["daysRemaining"] = remaining
            data["urgent"] = remaining <= EXPIRY_URGENT_DAYS
            rows.append((p.expiry_date, p.id, data))
    rows.sort(key=lambda r: (r[0], r[1]))
    return [r[2] for r in rows]


# Sales

def filter_sales(
    sales: Iterable[SaleRecord],
    *,
    search: Optional[str] = None,
    payment_method: Optional[str] = None,
    date_range: Optional[str] = None,
    employee_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[SaleRecord]:
    """
    search matches product, employee, customer or prescription number.
    Result is newest first.
    """
    term = _norm_term(search)
    start = preset_start(date_range, now)
    result = []
    for s in sales:
        if term and not _matches(term, s.product_name, s.employee_name, s.customer_name, s.prescription_number):
            continue
        if payment_method and payment_method != PRESET_ALL and s.payment_method != payment_method:
            continue
        if employee_id is not None and s.employee_id != employee_id:
            continue
        if start is not None and _naive(s.timestamp) < start:
            continue
        result.append(s)
    result.sort(key=lambda s: (_naive(s.timestamp), s.id), reverse=True)
    return result


def sales_on_day(sales: Iterable[SaleRecord], day: date) -> list[SaleRecord]:
    return [s for s in sales if _naive(s.timestamp).date() == day]


# Audit

def filter_audit_logs(
    logs: Iterable[AuditRecord],
    *,
    search: Optional[str] = None,
    action: Optional[str] = None,
    date_range: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[AuditRecord]:
    """search matches user name, details or action."""
    if date_range == PRESET_MONTH:
        raise ValueError(f"Unknown date range: {date_range}")
    term = _norm_term(search)
    start = preset_start(date_range, now)
    result = []
    for log in logs:
        if term and not _matches(term, log.user_name, log.details, log.action):
            continue
        if action and action != PRESET_ALL and log.action != action:
            continue
        if start is not None and _naive(log.timestamp) < start:
            continue
        result.append(log)
    result.sort(key=lambda a: (_naive(a.timestamp), a.id), reverse=True)
    return result


# Customers / wholesalers

def filter_customers(customers: Iterable[CustomerRecord], *, search: Optional[str] = None) -> list[CustomerRecord]:
    term = _norm_term(search)
    return [c for c in customers if not term or _matches(term, c.name, c.phone)]


def filter_wholesalers(wholesalers: Iterable[WholesalerRecord], *, search: Optional[str] = None) -> list[WholesalerRecord]:
    term = _norm_term(search)
    return [w for w in wholesalers if not term or _matches(term, w.name, w.contact_person, w.phone)]
