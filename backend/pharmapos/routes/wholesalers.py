# Overview: Flask API routes for wholesalers; parses input and returns JSON responses.

from flask import Blueprint, request, current_app, g

from ..decorators import require_auth, require_admin
from ..models import Wholesaler
from ..services import filters, wholesaler_service
from ..services.state_store import get_state_store
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_wholesaler,
    validate_payload,
)

WHOLESALER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name": "name",
        "contactPerson": "contact_person",
        "phone": "phone",
        "email": "email",
        "address": "address",
    },
    money_fields={"balance": "balance_cents"},
    required_on_create={"name"},
)

wholesalers_bp = Blueprint("wholesalers", __name__, url_prefix="/api/wholesalers")


@wholesalers_bp.get("")
@require_auth
@require_admin
def list_wholesalers():
    """Query params: search (name, contact person, phone)."""
    items = filters.filter_wholesalers(get_state_store().wholesalers(), search=request.args.get("search"))
    return {"items": [w.to_dict() for w in items], "count": len(items)}


@wholesalers_bp.post("")
@require_auth
@require_admin
def create_wholesaler_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Wholesaler, payload=payload, policy=WHOLESALER_POLICY, partial=False)
        enforce_rules_wholesaler(patch)
        created = wholesaler_service.create_wholesaler(patch=patch, actor=g.current_user)
    except ValidationError as e:
        return {"error": str(e), "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to create wholesaler")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@wholesalers_bp.put("/<int:wholesaler_id>")
@require_auth
@require_admin
def update_wholesaler_route(wholesaler_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Wholesaler, payload=payload, policy=WHOLESALER_POLICY, partial=True)
        enforce_rules_wholesaler(patch)
        updated = wholesaler_service.update_wholesaler(
            wholesaler_id=wholesaler_id, patch=patch, actor=g.current_user
        )
    except ValidationError as e:
        return {"error": str(e), "details": e.details}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to update wholesaler")
        return {"error": "Internal server error"}, 500

    return updated.to_dict(), 200


@wholesalers_bp.delete("/<int:wholesaler_id>")
@require_auth
@require_admin
def delete_wholesaler_route(wholesaler_id: int):
    try:
        wholesaler_service.delete_wholesaler(wholesaler_id=wholesaler_id, actor=g.current_user)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to delete wholesaler")
        return {"error": "Internal server error"}, 500

    return {"ok": True}, 200
