# Overview: Flask API routes for the POS terminal (cart, checkout, settlement); returns JSON responses.

"""
POS terminal routes.

Each authenticated user has one checkout session held in the app's
CartRegistry. Cart edits read the product's current row from the
database so stock caps use live stock.
"""

from flask import Blueprint, request, current_app, g

from ..decorators import require_auth
from ..money import MoneyError, optional_cents
from ..records import ProductRecord
from ..services import filters, products_service, reconciliation, sales_service
from ..services.cart import CartError, CartRegistry, CheckoutStateError, StockLimitError
from ..services.sales_service import CheckoutError
from ..services.state_store import get_state_store
from ..validation import NotFoundError
from pharmapos.time_utils import today_key

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


def _session():
    registry: CartRegistry = current_app.extensions[CartRegistry.EXTENSION_KEY]
    return registry.for_user(g.current_user.id)


def _cart_error(e: CartError):
    status = 409 if isinstance(e, (StockLimitError, CheckoutStateError)) else 400
    return {"error": str(e), "details": e.details, "cart": _session().to_dict()}, status


def _live_product(product_id) -> ProductRecord:
    return ProductRecord.from_model(products_service.get_product(product_id))


def _quantity(data: dict, default=None) -> int:
    raw = data.get("quantity", default)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise CartError("quantity must be an integer", details={"quantity": raw})
    return raw


@pos_bp.get("/products")
@require_auth
def search_products():
    """Active products for the product grid; search by name, generic name, SKU, barcode."""
    items = filters.filter_products(
        get_state_store().products(),
        search=request.args.get("search"),
        category=request.args.get("category"),
    )
    return {"items": [p.to_dict() for p in items], "count": len(items)}


@pos_bp.get("/cart")
@require_auth
def get_cart():
    return _session().to_dict()


@pos_bp.post("/cart/items")
@require_auth
def add_cart_item():
    data = request.get_json(silent=True) or {}
    product_id = data.get("productId")
    if not isinstance(product_id, int) or isinstance(product_id, bool):
        return {"error": "productId is required"}, 400

    session = _session()
    try:
        session.add_item(_live_product(product_id), _quantity(data, 1))
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except CartError as e:
        return _cart_error(e)

    return session.to_dict(), 200


@pos_bp.put("/cart/items/<int:product_id>")
@require_auth
def update_cart_item(product_id: int):
    data = request.get_json(silent=True) or {}
    session = _session()
    try:
        quantity = _quantity(data)
        product = _live_product(product_id) if session.cart.get(product_id) else None
        session.set_quantity(product_id, quantity, product)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except CartError as e:
        return _cart_error(e)

    return session.to_dict(), 200


@pos_bp.delete("/cart/items/<int:product_id>")
@require_auth
def remove_cart_item(product_id: int):
    session = _session()
    try:
        session.remove_item(product_id)
    except CartError as e:
        return _cart_error(e)
    return session.to_dict(), 200


@pos_bp.delete("/cart")
@require_auth
def clear_cart():
    session = _session()
    try:
        session.clear()
    except CartError as e:
        return _cart_error(e)
    return session.to_dict(), 200


@pos_bp.post("/checkout/open")
@require_auth
def open_checkout():
    session = _session()
    try:
        session.open_checkout()
    except CartError as e:
        return _cart_error(e)
    return session.to_dict(), 200


@pos_bp.post("/checkout/cancel")
@require_auth
def cancel_checkout():
    session = _session()
    try:
        session.cancel_checkout()
    except CartError as e:
        return _cart_error(e)
    return session.to_dict(), 200


@pos_bp.post("/checkout")
@require_auth
def confirm_checkout():
    """
    Body: paymentMethod (required), prescriptionNumber (required when any
    line needs a prescription), notes, customerId.
    """
    data = request.get_json(silent=True) or {}
    session = _session()

    try:
        result = sales_service.checkout(
            session,
            employee=g.current_user,
            payment_method=data.get("paymentMethod"),
            prescription_number=data.get("prescriptionNumber"),
            notes=data.get("notes"),
            customer_id=data.get("customerId"),
        )
    except CheckoutError as e:
        return {"error": str(e), "details": e.details, "cart": session.to_dict()}, 400
    except CartError as e:
        return _cart_error(e)
    except Exception:
        current_app.logger.exception("Failed to complete checkout")
        return {"error": "Internal server error", "cart": session.to_dict()}, 500

    return {"checkout": result.to_dict(), "cart": session.to_dict()}, 201


@pos_bp.get("/settlement")
@require_auth
def settlement_summary():
    """
    The caller's cash settlement for today plus lifetime balance.

    Query params:
    - pending: amount about to be submitted (currency units), for the
      projected balance preview
    """
    try:
        pending = optional_cents(request.args.get("pending"), field="pending")
    except MoneyError as e:
        return {"error": str(e)}, 400

    store = get_state_store()
    return reconciliation.employee_summary(
        store.sales(),
        store.audit_logs(),
        store.deposits(),
        employee_id=g.current_user.id,
        today=today_key(),
        pending_amount_cents=pending,
    )
