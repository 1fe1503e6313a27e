# Overview: Flask API routes for the audit log viewer; parses input and returns JSON responses.

from flask import Blueprint, request, current_app

from ..decorators import require_auth, require_admin
from ..models.audit import AUDIT_ACTIONS
from ..services import filters
from ..services.state_store import get_state_store

audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit-logs")


@audit_bp.get("")
@require_auth
@require_admin
def list_audit_logs():
    """
    Most recent AUDIT_FETCH_LIMIT entries.

    Query params:
    - search: user name, details or action
    - action: one audit action ("all" for any)
    - dateRange: today | week | all
    """
    logs = get_state_store().audit_logs()[: current_app.config["AUDIT_FETCH_LIMIT"]]
    try:
        items = filters.filter_audit_logs(
            logs,
            search=request.args.get("search"),
            action=request.args.get("action"),
            date_range=request.args.get("dateRange"),
        )
    except ValueError as e:
        return {"error": str(e)}, 400

    return {
        "items": [a.to_dict() for a in items],
        "count": len(items),
        "actions": list(AUDIT_ACTIONS),
    }
