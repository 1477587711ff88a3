# Overview: Flask API routes for purchases and purchase report exports.

"""
Purchase Routes

Creating an active purchase adds its quantities to product stock; status
changes move stock through the purchase state machine. Exports stream a
PDF or Excel file filtered by the query string (see report_service).
"""

from flask import Blueprint, request, jsonify, send_file

from ..decorators import require_auth, require_permission
from ..services import purchase_service, report_service
from ..validation import parse_date_param, parse_id


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("")
@require_auth
@require_permission("VIEW_PURCHASES")
def list_purchases_route():
    provider_id = request.args.get("provider_id")
    purchases = purchase_service.list_purchases(
        status=request.args.get("status"),
        provider_id=parse_id(provider_id, "provider ID") if provider_id else None,
        start_date=parse_date_param(request.args.get("start_date"), "start_date"),
        end_date=parse_date_param(request.args.get("end_date"), "end_date"),
    )
    return jsonify({
        "message": "Purchases retrieved",
        "purchases": [p.to_dict() for p in purchases],
        "count": len(purchases),
    })


@purchases_bp.get("/export/pdf")
@require_auth
@require_permission("EXPORT_PURCHASES")
def export_purchases_pdf_route():
    report = report_service.build_purchase_report(request.args)
    return send_file(
        report_service.render_pdf(report),
        mimetype=report_service.PDF_MIMETYPE,
        as_attachment=True,
        download_name=report.filename("pdf"),
    )


@purchases_bp.get("/export/excel")
@require_auth
@require_permission("EXPORT_PURCHASES")
def export_purchases_excel_route():
    report = report_service.build_purchase_report(request.args)
    return send_file(
        report_service.render_excel(report),
        mimetype=report_service.EXCEL_MIMETYPE,
        as_attachment=True,
        download_name=report.filename("xlsx"),
    )


@purchases_bp.get("/<purchase_id>")
@require_auth
@require_permission("VIEW_PURCHASES")
def get_purchase_route(purchase_id):
    purchase = purchase_service.get_purchase(parse_id(purchase_id, "purchase ID"))
    return jsonify({"message": "Purchase retrieved", "purchase": purchase.to_dict()})


@purchases_bp.post("")
@require_auth
@require_permission("CREATE_PURCHASES")
def create_purchase_route():
    """
    Create a purchase.

    Request body:
    {
        "provider_id": 1,               // required, active provider
        "purchase_date": "2025-03-01",  // optional, defaults to today
        "status": "active",             // optional: active | inactive
        "lines": [                      // required, non-empty
            {"product_id": 1, "quantity": 5, "price": 3.2}
        ]
    }
    """
    purchase = purchase_service.create_purchase(request.get_json(silent=True) or {})
    return jsonify({"message": "Purchase created", "purchase": purchase.to_dict()}), 201


@purchases_bp.put("/<purchase_id>")
@require_auth
@require_permission("UPDATE_PURCHASES")
def update_purchase_route(purchase_id):
    purchase = purchase_service.update_purchase(
        parse_id(purchase_id, "purchase ID"),
        request.get_json(silent=True) or {},
    )
    return jsonify({"message": "Purchase updated", "purchase": purchase.to_dict()})


@purchases_bp.patch("/<purchase_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_PURCHASES")
def update_purchase_status_route(purchase_id):
    data = request.get_json(silent=True) or {}
    purchase = purchase_service.change_purchase_status(parse_id(purchase_id, "purchase ID"), data.get("status"))
    return jsonify({"message": f"Purchase is now {purchase.status}", "purchase": purchase.to_dict()})


@purchases_bp.delete("/<purchase_id>")
@require_auth
@require_permission("DELETE_PURCHASES")
def delete_purchase_route(purchase_id):
    purchase_service.delete_purchase(parse_id(purchase_id, "purchase ID"))
    return jsonify({"message": "Purchase deleted"})
