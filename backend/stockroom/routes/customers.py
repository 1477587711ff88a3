# Overview: Flask API routes for customers; parses input and returns JSON responses.

"""
Customer Routes

The default (walk-in) customer is listed like any other but is read-only:
edit, delete and deactivate requests for it fail with 400.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..services import customer_service
from ..validation import parse_id


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    customers = customer_service.list_customers(
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify({
        "message": "Customers retrieved",
        "customers": [c.to_dict() for c in customers],
        "count": len(customers),
    })


@customers_bp.get("/default")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def get_default_customer_route():
    customer = customer_service.get_default_customer()
    return jsonify({"message": "Default customer retrieved", "customer": customer.to_dict()})


@customers_bp.get("/<customer_id>")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def get_customer_route(customer_id):
    customer = customer_service.get_customer(parse_id(customer_id, "customer ID"))
    return jsonify({"message": "Customer retrieved", "customer": customer.to_dict()})


@customers_bp.get("/<customer_id>/validate-sale")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def validate_customer_for_sale_route(customer_id):
    customer = customer_service.validate_for_sale(parse_id(customer_id, "customer ID"))
    return jsonify({
        "message": "Customer can be used for a sale",
        "valid": True,
        "customer": customer.to_dict(),
    })


@customers_bp.post("")
@require_auth
@require_permission("CREATE_CUSTOMERS")
def create_customer_route():
    customer = customer_service.create_customer(request.get_json(silent=True) or {})
    return jsonify({"message": "Customer created", "customer": customer.to_dict()}), 201


@customers_bp.put("/<customer_id>")
@require_auth
@require_permission("UPDATE_CUSTOMERS")
def update_customer_route(customer_id):
    customer = customer_service.update_customer(
        parse_id(customer_id, "customer ID"),
        request.get_json(silent=True) or {},
    )
    return jsonify({"message": "Customer updated", "customer": customer.to_dict()})


@customers_bp.patch("/<customer_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_CUSTOMERS")
def update_customer_status_route(customer_id):
    data = request.get_json(silent=True) or {}
    customer = customer_service.set_customer_status(parse_id(customer_id, "customer ID"), data.get("status"))
    return jsonify({"message": f"Customer is now {customer.status}", "customer": customer.to_dict()})


@customers_bp.delete("/<customer_id>")
@require_auth
@require_permission("DELETE_CUSTOMERS")
def delete_customer_route(customer_id):
    customer_service.delete_customer(parse_id(customer_id, "customer ID"))
    return jsonify({"message": "Customer deleted"})
