# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalogue routes.

- Reads (listing, categories, low stock, expiring) are open to any
  authenticated user and come from the state store snapshot
- Writes require the admin role; DELETE archives (soft delete)
"""
from flask import Blueprint, request, current_app, g
from ..services import filters, products_service
from ..services.state_store import get_state_store
from ..models import Product
from ..records import ProductRecord
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_admin

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name": "name",
        "genericName": "generic_name",
        "manufacturer": "manufacturer",
        "category": "category",
        "dosageForm": "dosage_form",
        "strength": "strength",
        "barcode": "barcode",
        "sku": "sku",
        "stock": "stock",
        "reorderLevel": "reorder_level",
        "expiryDate": "expiry_date",
        "batchNumber": "batch_number",
        "location": "location",
        "countryOrigin": "country_origin",
        "description": "description",
        "requiresPrescription": "requires_prescription",
    },
    money_fields={
        "unitPrice": "unit_price_cents",
        "costPrice": "cost_price_cents",
        "wholesalePrice": "wholesale_price_cents",
    },
    required_on_create={"name", "unitPrice"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    Active products.

    Query params:
    - search: matches name, generic name, SKU, barcode
    - category: exact category ("all" for any)
    - stock: "low" | "normal"
    """
    products = get_state_store().products()
    items = filters.filter_products(
        products,
        search=request.args.get("search"),
        category=request.args.get("category"),
        stock=request.args.get("stock"),
    )
    return {
        "items": [p.to_dict() for p in items],
        "count": len(items),
        "categories": filters.product_categories(products),
    }


@products_bp.get("/categories")
@require_auth
def list_categories():
    return {"categories": filters.product_categories(get_state_store().products())}


@products_bp.get("/low-stock")
@require_auth
def list_low_stock():
    """Top five products at or below their reorder level."""
    items = filters.low_stock(get_state_store().products())
    return {"items": [p.to_dict() for p in items], "count": len(items)}


@products_bp.get("/expiring")
@require_auth
def list_expiring():
    items = filters.expiring_soon(
        get_state_store().products(),
        window_days=current_app.config["EXPIRY_WARNING_DAYS"],
    )
    return {"items": items, "count": len(items)}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        p = products_service.get_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return ProductRecord.from_model(p).to_dict()


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch, actor=g.current_user)
    except ValidationError as e:
        return {"error": str(e), "details": e.details}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id=product_id, patch=patch, actor=g.current_user)
    except ValidationError as e:
        return {"error": str(e), "details": e.details}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_admin
def archive_product_route(product_id: int):
    """Archive (soft-delete) a product. Past sales keep their product name."""
    try:
        archived = products_service.archive_product(product_id=product_id, actor=g.current_user)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to archive product")
        return {"error": "Internal server error"}, 500

    return {"ok": True, "product": archived.to_dict()}, 200
