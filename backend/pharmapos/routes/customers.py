# Overview: Flask API routes for customers and debt updates; parses input and returns JSON responses.

from flask import Blueprint, request, current_app, g

from ..decorators import require_auth
from ..money import MoneyError, optional_cents
from ..records import CustomerRecord
from ..services import customer_service, filters
from ..services.state_store import get_state_store
from ..validation import NotFoundError, ValidationError

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers():
    """Query params: search (name or phone)."""
    items = filters.filter_customers(get_state_store().customers(), search=request.args.get("search"))
    return {"items": [c.to_dict() for c in items], "count": len(items)}


@customers_bp.post("")
@require_auth
def create_customer_route():
    """Body: name (required), phone, debtAmount (currency units, default 0)."""
    data = request.get_json(silent=True) or {}
    try:
        debt = optional_cents(data.get("debtAmount"), field="debtAmount")
        customer = customer_service.create_customer(
            name=data.get("name"),
            phone=data.get("phone"),
            debt_amount_cents=debt,
            actor=g.current_user,
        )
    except (ValidationError, MoneyError) as e:
        return {"error": str(e), "details": getattr(e, "details", {})}, 400
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return {"error": "Internal server error"}, 500

    return CustomerRecord.from_model(customer).to_dict(), 201


@customers_bp.post("/<int:customer_id>/debt")
@require_auth
def update_debt_route(customer_id: int):
    """
    Body: paymentAmount and/or additionalDebt (currency units, >= 0).

    new debt = current - paymentAmount + additionalDebt
    """
    data = request.get_json(silent=True) or {}
    try:
        payment = optional_cents(data.get("paymentAmount"), field="paymentAmount")
        additional = optional_cents(data.get("additionalDebt"), field="additionalDebt")
        customer = customer_service.update_customer_debt(
            customer_id=customer_id,
            payment_cents=payment,
            additional_debt_cents=additional,
            actor=g.current_user,
        )
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except (ValidationError, MoneyError) as e:
        return {"error": str(e), "details": getattr(e, "details", {})}, 400
    except Exception:
        current_app.logger.exception("Failed to update customer debt")
        return {"error": "Internal server error"}, 500

    return CustomerRecord.from_model(customer).to_dict(), 200
