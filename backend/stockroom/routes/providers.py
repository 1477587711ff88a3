# Overview: Flask API routes for providers (suppliers).

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..services import provider_service
from ..validation import parse_id


providers_bp = Blueprint("providers", __name__, url_prefix="/api/providers")


@providers_bp.get("")
@require_auth
@require_permission("VIEW_PROVIDERS")
def list_providers_route():
    providers = provider_service.list_providers(
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify({
        "message": "Providers retrieved",
        "providers": [p.to_dict() for p in providers],
        "count": len(providers),
    })


@providers_bp.get("/<provider_id>")
@require_auth
@require_permission("VIEW_PROVIDERS")
def get_provider_route(provider_id):
    provider = provider_service.get_provider(parse_id(provider_id, "provider ID"))
    return jsonify({"message": "Provider retrieved", "provider": provider.to_dict()})


@providers_bp.post("")
@require_auth
@require_permission("CREATE_PROVIDERS")
def create_provider_route():
    """
    Create a provider.

    Request body:
    {
        "nit": "900123456",          // required, digits only
        "company": "Acme S.A.S.",    // required
        "name": "Jane Doe",          // required, contact person
        "contact_phone": "3001234567", // required, digits only
        "email": "sales@acme.com",   // required, unique
        "status": "active"           // optional
    }
    """
    provider = provider_service.create_provider(request.get_json(silent=True) or {})
    return jsonify({"message": "Provider created", "provider": provider.to_dict()}), 201


@providers_bp.put("/<provider_id>")
@require_auth
@require_permission("UPDATE_PROVIDERS")
def update_provider_route(provider_id):
    provider = provider_service.update_provider(
        parse_id(provider_id, "provider ID"),
        request.get_json(silent=True) or {},
    )
    return jsonify({"message": "Provider updated", "provider": provider.to_dict()})


@providers_bp.patch("/<provider_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_PROVIDERS")
def update_provider_status_route(provider_id):
    data = request.get_json(silent=True) or {}
    provider = provider_service.set_provider_status(parse_id(provider_id, "provider ID"), data.get("status"))
    return jsonify({"message": f"Provider is now {provider.status}", "provider": provider.to_dict()})


@providers_bp.delete("/<provider_id>")
@require_auth
@require_permission("DELETE_PROVIDERS")
def delete_provider_route(provider_id):
    provider_service.delete_provider(parse_id(provider_id, "provider ID"))
    return jsonify({"message": "Provider deleted"})
