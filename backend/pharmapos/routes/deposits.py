# Overview: Flask API routes for daily cash deposits; parses input and returns JSON responses.

from flask import Blueprint, request, current_app, g

from ..decorators import require_auth
from ..models.auth import ROLE_ADMIN
from ..money import MoneyError, to_cents
from ..services import deposit_service
from ..services.state_store import get_state_store
from ..validation import ValidationError

deposits_bp = Blueprint("deposits", __name__, url_prefix="/api/deposits")


@deposits_bp.get("")
@require_auth
def list_deposits():
    """
    Admins see every deposit (optionally ?employeeId=); employees only
    their own.
    """
    employee_id = request.args.get("employeeId", type=int)
    if g.current_user.role != ROLE_ADMIN:
        employee_id = g.current_user.id

    items = get_state_store().deposits()
    if employee_id is not None:
        items = [d for d in items if d.employee_id == employee_id]
    return {"items": [d.to_dict() for d in items], "count": len(items)}


@deposits_bp.post("")
@require_auth
def record_deposit_route():
    """Body: amountSubmitted (currency units), notes, submissionType (revenue | debt)."""
    data = request.get_json(silent=True) or {}
    try:
        amount = to_cents(data.get("amountSubmitted"), field="amountSubmitted")
        deposit = deposit_service.record_deposit(
            employee=g.current_user,
            amount_submitted_cents=amount,
            notes=data.get("notes"),
            submission_type=data.get("submissionType") or "revenue",
        )
    except (ValidationError, MoneyError) as e:
        return {"error": str(e), "details": getattr(e, "details", {})}, 400
    except Exception:
        current_app.logger.exception("Failed to record deposit")
        return {"error": "Internal server error"}, 500

    return deposit.to_dict(), 201
