# Overview: Flask API routes for admin reports (dashboard, settlements); returns JSON responses.

from flask import Blueprint, request, current_app

from ..decorators import require_auth, require_admin
from ..services import reconciliation, reporting_service
from ..services.state_store import get_state_store

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
@require_admin
def dashboard():
    return reporting_service.dashboard_stats(
        get_state_store().snapshot(),
        expiry_window_days=current_app.config["EXPIRY_WARNING_DAYS"],
    )


@reports_bp.get("/settlements")
@require_auth
@require_admin
def settlement_history():
    """
    Daily settlement history, newest day first.

    Query params:
    - employeeId: restrict to one employee (default: everyone)
    """
    employee_id = request.args.get("employeeId", type=int)
    store = get_state_store()
    days = reconciliation.daily_settlements(
        store.sales(), store.audit_logs(), store.deposits(), employee_id=employee_id
    )
    balance = reconciliation.lifetime_balance(
        store.sales(), store.audit_logs(), store.deposits(), employee_id=employee_id
    )
    return {
        "items": [d.to_dict() for d in days],
        "count": len(days),
        "lifetime": balance.to_dict(),
    }


@reports_bp.get("/balance")
@require_auth
@require_admin
def lifetime_balance():
    """Lifetime balance, system-wide or for ?employeeId=."""
    employee_id = request.args.get("employeeId", type=int)
    store = get_state_store()
    balance = reconciliation.lifetime_balance(
        store.sales(), store.audit_logs(), store.deposits(), employee_id=employee_id
    )
    return balance.to_dict()
