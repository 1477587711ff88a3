# Overview: Flask API routes for roles and the permission catalogue.

"""
Role Routes

- GET /api/roles/permissions lists every permission grouped by category,
  for building role editors.
- The admin role is locked (403 on edit/deactivate).
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..permissions import get_permissions_by_category
from ..services import role_service
from ..validation import parse_id


roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


@roles_bp.get("")
@require_auth
@require_permission("VIEW_ROLES")
def list_roles_route():
    roles = role_service.list_roles(status=request.args.get("status"))
    return jsonify({
        "message": "Roles retrieved",
        "roles": [r.to_dict() for r in roles],
        "count": len(roles),
    })


@roles_bp.get("/permissions")
@require_auth
@require_permission("VIEW_ROLES")
def list_permissions_route():
    return jsonify({
        "message": "Permissions retrieved",
        "permissions": get_permissions_by_category(),
    })


@roles_bp.get("/<role_id>")
@require_auth
@require_permission("VIEW_ROLES")
def get_role_route(role_id):
    role = role_service.get_role(parse_id(role_id, "role ID"))
    return jsonify({"message": "Role retrieved", "role": role.to_dict()})


@roles_bp.post("")
@require_auth
@require_permission("CREATE_ROLES")
def create_role_route():
    """
    Create a role.

    Request body:
    {
        "name": "cashier",                          // required, stored lower-case
        "description": "...",                       // optional
        "permissions": ["VIEW_SALES", "CREATE_SALES"] // optional
    }
    """
    role = role_service.create_role(request.get_json(silent=True) or {})
    return jsonify({"message": "Role created", "role": role.to_dict()}), 201


@roles_bp.put("/<role_id>")
@require_auth
@require_permission("UPDATE_ROLES")
def update_role_route(role_id):
    role = role_service.update_role(parse_id(role_id, "role ID"), request.get_json(silent=True) or {})
    return jsonify({"message": "Role updated", "role": role.to_dict()})


@roles_bp.patch("/<role_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_ROLES")
def update_role_status_route(role_id):
    data = request.get_json(silent=True) or {}
    role = role_service.set_role_status(parse_id(role_id, "role ID"), data.get("status"))
    return jsonify({"message": f"Role is now {role.status}", "role": role.to_dict()})


@roles_bp.delete("/<role_id>")
@require_auth
@require_permission("DELETE_ROLES")
def delete_role_route(role_id):
    role_service.delete_role(parse_id(role_id, "role ID"))
    return jsonify({"message": "Role deleted"})
