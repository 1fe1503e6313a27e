# Overview: Screen bootstrap routes ("/", "/pos", "/admin"); return the data each screen renders.

from flask import Blueprint, request, current_app, g

from ..decorators import require_auth, require_admin
from ..models.audit import AUDIT_ACTIONS
from ..services import auth_service, filters, reconciliation, reporting_service, session_service
from ..services.cart import CartRegistry
from ..services.state_store import get_state_store
from pharmapos.time_utils import today_key

screens_bp = Blueprint("screens", __name__)

ADMIN_TABS = ("overview", "inventory", "sales", "audit", "wholesalers")


@screens_bp.get("/")
def login_screen():
    """Login screen, or the landing path for a caller that is already signed in."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        context = session_service.validate_session(auth_header.split(" ", 1)[1].strip())
        if context:
            return {"screen": "redirect", "redirect": auth_service.home_path_for(context.user)}
    return {"screen": "login"}


@screens_bp.get("/pos")
@require_auth
def pos_screen():
    store = get_state_store()
    registry: CartRegistry = current_app.extensions[CartRegistry.EXTENSION_KEY]
    user = g.current_user
    return {
        "screen": "pos",
        "user": user.to_dict(),
        "products": [p.to_dict() for p in store.products()],
        "categories": filters.product_categories(store.products()),
        "cart": registry.for_user(user.id).to_dict(),
        "customers": [c.to_dict() for c in store.customers()],
        "settlement": reconciliation.employee_summary(
            store.sales(),
            store.audit_logs(),
            store.deposits(),
            employee_id=user.id,
            today=today_key(),
        ),
    }


def _inventory_tab(store) -> dict:
    products = store.products()
    return {
        "products": [p.to_dict() for p in products],
        "categories": filters.product_categories(products),
        "lowStock": [p.to_dict() for p in filters.low_stock(products)],
        "expiring": filters.expiring_soon(
            products, window_days=current_app.config["EXPIRY_WARNING_DAYS"]
        ),
    }


def _sales_tab(store) -> dict:
    sales = store.sales()[: current_app.config["SALES_FETCH_LIMIT"]]
    return {
        "sales": [s.to_dict() for s in sales],
        "totals": reporting_service.sales_totals(sales, store.products()),
        "settlements": [
            d.to_dict()
            for d in reconciliation.daily_settlements(store.sales(), store.audit_logs(), store.deposits())
        ],
    }


def _audit_tab(store) -> dict:
    logs = store.audit_logs()[: current_app.config["AUDIT_FETCH_LIMIT"]]
    return {"auditLogs": [a.to_dict() for a in logs], "actions": list(AUDIT_ACTIONS)}


def _wholesalers_tab(store) -> dict:
    return {"wholesalers": [w.to_dict() for w in store.wholesalers()]}


@screens_bp.get("/admin")
@require_auth
@require_admin
def admin_screen():
    """Query params: tab = overview | inventory | sales | audit | wholesalers."""
    tab = request.args.get("tab") or "overview"
    if tab not in ADMIN_TABS:
        return {"error": f"Unknown tab: {tab}", "tabs": list(ADMIN_TABS)}, 400

    store = get_state_store()
    if tab == "overview":
        data = reporting_service.dashboard_stats(
            store.snapshot(),
            expiry_window_days=current_app.config["EXPIRY_WARNING_DAYS"],
        )
    elif tab == "inventory":
        data = _inventory_tab(store)
    elif tab == "sales":
        data = _sales_tab(store)
    elif tab == "audit":
        data = _audit_tab(store)
    else:
        data = _wholesalers_tab(store)

    return {"screen": "admin", "tab": tab, "tabs": list(ADMIN_TABS), "user": g.current_user.to_dict(), **data}
