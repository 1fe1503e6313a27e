# Overview: Dashboard and sales-summary aggregation over state store snapshots.

"""
Reporting

Pure functions over record tuples. Profit uses the product's current cost
price; a sale whose product is no longer in the active catalogue counts
with cost 0.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..models.sales import PAYMENT_CARD, PAYMENT_CASH, PAYMENT_MOBILE
from ..records import ProductRecord, SaleRecord
from pharmapos.time_utils import day_key, utcnow
from . import filters, reconciliation
from .state_store import Snapshot

RECENT_SALES_LIMIT = 10


def sale_profit_cents(sale: SaleRecord, costs: dict[int, int]) -> int:
    return (sale.unit_price_cents - costs.get(sale.product_id, 0)) * sale.quantity


def _costs(products: Iterable[ProductRecord]) -> dict[int, int]:
    return {p.id: p.cost_price_cents for p in products}


def sales_totals(sales: Iterable[SaleRecord], products: Iterable[ProductRecord]) -> dict:
    costs = _costs(products)
    totals = {
        "revenueCents": 0,
        "profitCents": 0,
        "saleCount": 0,
        "itemCount": 0,
        "cashItems": 0,
        "cashRevenueCents": 0,
        "cardItems": 0,
        "cardRevenueCents": 0,
        "mobileItems": 0,
        "mobileRevenueCents": 0,
    }
    by_method = {
        PAYMENT_CASH: ("cashItems", "cashRevenueCents"),
        PAYMENT_CARD: ("cardItems", "cardRevenueCents"),
        PAYMENT_MOBILE: ("mobileItems", "mobileRevenueCents"),
    }
    for sale in sales:
        totals["revenueCents"] += sale.total_amount_cents
        totals["profitCents"] += sale_profit_cents(sale, costs)
        totals["saleCount"] += 1
        totals["itemCount"] += sale.quantity
        keys = by_method.get(sale.payment_method)
        if keys:
            totals[keys[0]] += sale.quantity
            totals[keys[1]] += sale.total_amount_cents
    return totals


def recent_sales(sales: Iterable[SaleRecord], limit: int = RECENT_SALES_LIMIT) -> list[SaleRecord]:
    return filters.filter_sales(sales)[:limit]


def dashboard_stats(
    snapshot: Snapshot,
    *,
    now: Optional[datetime] = None,
    expiry_window_days: int = 60,
) -> dict:
    """Admin overview tab."""
    now = now or utcnow()
    today = day_key(now)

    todays_sales = filters.sales_on_day(snapshot.sales, now.date())
    totals = sales_totals(todays_sales, snapshot.products)

    today_settlement = reconciliation.settlement_for_day(
        snapshot.sales, snapshot.audit_logs, snapshot.deposits, today
    )
    balance = reconciliation.lifetime_balance(
        snapshot.sales, snapshot.audit_logs, snapshot.deposits
    )

    return {
        "todayRevenueCents": totals["revenueCents"],
        "todayProfitCents": totals["profitCents"],
        "todaySaleCount": totals["saleCount"],
        "lowStockCount": len(filters.low_stock(snapshot.products, limit=None)),
        "lowStock": [p.to_dict() for p in filters.low_stock(snapshot.products)],
        "expiringCount": len(
            filters.expiring_soon(snapshot.products, today=now.date(), window_days=expiry_window_days)
        ),
        "todayDeposits": {
            "expectedCents": today_settlement.expected_cents,
            "submittedCents": today_settlement.submitted_cents,
            "discrepancyCents": today_settlement.discrepancy_cents,
            "status": today_settlement.status,
            "hasDeposits": today_settlement.submission_count > 0,
        },
        "lifetimeBalance": balance.to_dict(),
        "recentSales": [s.to_dict() for s in recent_sales(snapshot.sales)],
    }
