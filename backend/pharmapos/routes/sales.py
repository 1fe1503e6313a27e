# Overview: Flask API routes for sales history and CSV export; parses input and returns JSON responses.

"""
Sales history routes.

The default listing works on the most recent SALES_FETCH_LIMIT sales from
the state store. Passing year + month re-fetches that calendar month from
the database instead, without the limit.
"""

from flask import Blueprint, Response, request, current_app, g

from ..decorators import require_auth, require_admin
from ..records import SaleRecord
from ..services import export_service, filters, reporting_service, sales_service
from ..services.state_store import get_state_store
from pharmapos.time_utils import utcnow

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


class SalesQueryError(ValueError):
    pass


def _filtered_sales() -> list[SaleRecord]:
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)

    if year is not None and month is not None:
        try:
            rows = sales_service.sales_for_month(year, month)
        except ValueError as e:
            raise SalesQueryError(str(e))
        sales = [SaleRecord.from_model(s) for s in rows]
        date_range = None
    elif year is not None or month is not None:
        raise SalesQueryError("year and month must be given together")
    else:
        sales = get_state_store().sales()[: current_app.config["SALES_FETCH_LIMIT"]]
        date_range = request.args.get("dateRange")

    try:
        return filters.filter_sales(
            sales,
            search=request.args.get("search"),
            payment_method=request.args.get("paymentMethod"),
            date_range=date_range,
        )
    except ValueError as e:
        raise SalesQueryError(str(e))


@sales_bp.get("")
@require_auth
@require_admin
def list_sales():
    """
    Query params:
    - search: product, employee, customer or prescription number
    - paymentMethod: cash | card | mobile banking | all
    - dateRange: today | week | month | all
    - year, month: server-side month re-fetch (month is 1-12)
    """
    try:
        items = _filtered_sales()
    except SalesQueryError as e:
        return {"error": str(e)}, 400

    return {
        "items": [s.to_dict() for s in items],
        "count": len(items),
        "totals": reporting_service.sales_totals(items, get_state_store().products()),
    }


@sales_bp.get("/export")
@require_auth
@require_admin
def export_sales():
    """Same filters as the listing, rendered as a CSV download."""
    try:
        items = _filtered_sales()
    except SalesQueryError as e:
        return {"error": str(e)}, 400

    filename = export_service.export_filename(utcnow())
    return Response(
        export_service.sales_csv(items),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@sales_bp.get("/today")
@require_auth
def my_sales_today():
    """The caller's own sales since midnight, newest first."""
    items = filters.filter_sales(
        get_state_store().sales(),
        employee_id=g.current_user.id,
        date_range=filters.PRESET_TODAY,
    )
    return {
        "items": [s.to_dict() for s in items],
        "count": len(items),
        "totals": reporting_service.sales_totals(items, get_state_store().products()),
    }
