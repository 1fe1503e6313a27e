# Overview: CSV export of sales history.

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Iterable, Optional

from ..money import format_cents
from ..records import SaleRecord
from pharmapos.time_utils import utcnow

CSV_HEADERS = [
    "Date",
    "Time",
    "Product",
    "Quantity",
    "Total Amount",
    "Payment Method",
    "Employee",
    "Customer",
    "Prescription",
]

WALK_IN = "Walk-in"


def format_date(dt: datetime) -> str:
    """en-US short date, e.g. "Mar 5, 2025"."""
    return f"{dt:%b} {dt.day}, {dt.year}"


def format_time(dt: datetime) -> str:
    """en-US 12-hour time, e.g. "02:05 PM"."""
    return dt.strftime("%I:%M %p")


def sale_row(sale: SaleRecord) -> list[str]:
    return [
        format_date(sale.timestamp),
        format_time(sale.timestamp),
        sale.product_name,
        str(sale.quantity),
        format_cents(sale.total_amount_cents),
        sale.payment_method,
        sale.employee_name,
        sale.customer_name or WALK_IN,
        sale.prescription_number or "",
    ]


def sales_csv(sales: Iterable[SaleRecord]) -> str:
    """
    Render sales as CSV text.

    Fields holding a comma, quote or newline are wrapped in double quotes
    with inner quotes doubled. Rows end with "\\n".
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for sale in sales:
        writer.writerow(sale_row(sale))
    return buf.getvalue()


def export_filename(now: Optional[datetime] = None) -> str:
    return f"sales_export_{(now or utcnow()).date().isoformat()}.csv"
