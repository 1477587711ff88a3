# Overview: Flask API routes for branches.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..services import branch_service
from ..validation import parse_id


branches_bp = Blueprint("branches", __name__, url_prefix="/api/branches")


@branches_bp.get("")
@require_auth
@require_permission("VIEW_BRANCHES")
def list_branches_route():
    branches = branch_service.list_branches(status=request.args.get("status"))
    return jsonify({
        "message": "Branches retrieved",
        "branches": [b.to_dict() for b in branches],
        "count": len(branches),
    })


@branches_bp.get("/<branch_id>")
@require_auth
@require_permission("VIEW_BRANCHES")
def get_branch_route(branch_id):
    branch = branch_service.get_branch(parse_id(branch_id, "branch ID"))
    return jsonify({"message": "Branch retrieved", "branch": branch.to_dict()})


@branches_bp.post("")
@require_auth
@require_permission("CREATE_BRANCHES")
def create_branch_route():
    branch = branch_service.create_branch(request.get_json(silent=True) or {})
    return jsonify({"message": "Branch created", "branch": branch.to_dict()}), 201


@branches_bp.put("/<branch_id>")
@require_auth
@require_permission("UPDATE_BRANCHES")
def update_branch_route(branch_id):
    branch = branch_service.update_branch(
        parse_id(branch_id, "branch ID"),
        request.get_json(silent=True) or {},
    )
    return jsonify({"message": "Branch updated", "branch": branch.to_dict()})


@branches_bp.patch("/<branch_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_BRANCHES")
def update_branch_status_route(branch_id):
    data = request.get_json(silent=True) or {}
    branch = branch_service.set_branch_status(parse_id(branch_id, "branch ID"), data.get("status"))
    return jsonify({"message": f"Branch is now {branch.status}", "branch": branch.to_dict()})


@branches_bp.delete("/<branch_id>")
@require_auth
@require_permission("DELETE_BRANCHES")
def delete_branch_route(branch_id):
    branch_service.delete_branch(parse_id(branch_id, "branch ID"))
    return jsonify({"message": "Branch deleted"})
