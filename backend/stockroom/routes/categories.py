# Overview: Flask API routes for product categories.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..services import category_service
from ..validation import parse_id


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("VIEW_CATEGORIES")
def list_categories_route():
    categories = category_service.list_categories(
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify({
        "message": "Categories retrieved",
        "categories": [c.to_dict() for c in categories],
        "count": len(categories),
    })


@categories_bp.get("/<category_id>")
@require_auth
@require_permission("VIEW_CATEGORIES")
def get_category_route(category_id):
    category = category_service.get_category(parse_id(category_id, "category ID"))
    return jsonify({"message": "Category retrieved", "category": category.to_dict()})


@categories_bp.post("")
@require_auth
@require_permission("CREATE_CATEGORIES")
def create_category_route():
    category = category_service.create_category(request.get_json(silent=True) or {})
    return jsonify({"message": "Category created", "category": category.to_dict()}), 201


@categories_bp.put("/<category_id>")
@require_auth
@require_permission("UPDATE_CATEGORIES")
def update_category_route(category_id):
    category = category_service.update_category(
        parse_id(category_id, "category ID"),
        request.get_json(silent=True) or {},
    )
    return jsonify({"message": "Category updated", "category": category.to_dict()})


@categories_bp.patch("/<category_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_CATEGORIES")
def update_category_status_route(category_id):
    data = request.get_json(silent=True) or {}
    category = category_service.set_category_status(parse_id(category_id, "category ID"), data.get("status"))
    return jsonify({"message": f"Category is now {category.status}", "category": category.to_dict()})


@categories_bp.delete("/<category_id>")
@require_auth
@require_permission("DELETE_CATEGORIES")
def delete_category_route(category_id):
    category_service.delete_category(parse_id(category_id, "category ID"))
    return jsonify({"message": "Category deleted"})
