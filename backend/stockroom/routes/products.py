# Overview: Flask API routes for products; parses input and returns JSON responses.

"""
Product Routes

All routes require authentication and a *_PRODUCTS permission.
Stock is read-only here; purchases and sales change it.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..errors import ValidationError
from ..services import product_service
from ..validation import parse_id


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _with_alert(product) -> dict:
    data = product.to_dict()
    data["expiration_alert"] = product_service.expiration_alert(product)
    return data


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_products_route():
    """
    List products.

    Query parameters:
    - status: active | inactive
    - category_id: only products of this category
    - search: matches name or code

    Each product carries an expiration_alert; the top-level "alerts" list
    collects the non-empty ones.
    """
    category_id = request.args.get("category_id")
    products = product_service.list_products(
        status=request.args.get("status"),
        category_id=parse_id(category_id, "category ID") if category_id else None,
        search=request.args.get("search"),
    )
    items = [_with_alert(p) for p in products]
    return jsonify({
        "message": "Products retrieved",
        "products": items,
        "count": len(items),
        "alerts": [item["expiration_alert"] for item in items if item["expiration_alert"]],
    })


@products_bp.get("/expiring")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_expiring_products_route():
    days = request.args.get("days", type=int)
    if days is None and request.args.get("days"):
        raise ValidationError("days must be an integer")
    groups = product_service.list_expiring(days)
    return jsonify({
        "message": "Expiring products retrieved",
        "expired": [_with_alert(p) for p in groups["expired"]],
        "expiring": [_with_alert(p) for p in groups["expiring"]],
    })


@products_bp.get("/<product_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_product_route(product_id):
    product = product_service.get_product(parse_id(product_id, "product ID"))
    return jsonify({"message": "Product retrieved", "product": _with_alert(product)})


@products_bp.get("/<product_id>/availability")
@require_auth
@require_permission("VIEW_PRODUCTS")
def product_availability_route(product_id):
    result = product_service.check_availability(
        parse_id(product_id, "product ID"),
        request.args.get("quantity", "1"),
    )
    message = "Product is available" if result["available"] else "Product is not available"
    return jsonify({"message": message, **result})


@products_bp.post("")
@require_auth
@require_permission("CREATE_PRODUCTS")
def create_product_route():
    """
    Create a product.

    Request body:
    {
        "name": "Paracetamol 500mg",     // required
        "category_id": 1,                // required, active category
        "price": 12.5,                   // required, > 0
        "batch_date": "2025-01-10",      // required
        "expiration_date": "2026-01-10", // required, >= batch_date
        "status": "active"               // optional
    }
    """
    product = product_service.create_product(request.get_json(silent=True) or {})
    return jsonify({"message": "Product created", "product": _with_alert(product)}), 201


@products_bp.put("/<product_id>")
@require_auth
@require_permission("UPDATE_PRODUCTS")
def update_product_route(product_id):
    product = product_service.update_product(
        parse_id(product_id, "product ID"),
        request.get_json(silent=True) or {},
    )
    return jsonify({"message": "Product updated", "product": _with_alert(product)})


@products_bp.patch("/<product_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_PRODUCTS")
def update_product_status_route(product_id):
    data = request.get_json(silent=True) or {}
    product = product_service.set_product_status(parse_id(product_id, "product ID"), data.get("status"))
    return jsonify({"message": f"Product is now {product.status}", "product": product.to_dict()})


@products_bp.delete("/<product_id>")
@require_auth
@require_permission("DELETE_PRODUCTS")
def delete_product_route(product_id):
    product_service.delete_product(parse_id(product_id, "product ID"))
    return jsonify({"message": "Product deleted"})
