# Overview: Flask API routes for sales and sales report exports.

from flask import Blueprint, request, jsonify, send_file

from ..decorators import require_auth, require_permission
from ..services import report_service, sales_service
from ..validation import parse_date_param, parse_id


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    customer_id = request.args.get("customer_id")
    sales = sales_service.list_sales(
        status=request.args.get("status"),
        customer_id=parse_id(customer_id, "customer ID") if customer_id else None,
        start_date=parse_date_param(request.args.get("start_date"), "start_date"),
        end_date=parse_date_param(request.args.get("end_date"), "end_date"),
    )
    return jsonify({
        "message": "Sales retrieved",
        "sales": [s.to_dict() for s in sales],
        "count": len(sales),
    })


@sales_bp.get("/export/pdf")
@require_auth
@require_permission("EXPORT_SALES")
def export_sales_pdf_route():
    report = report_service.build_sales_report(request.args)
    return send_file(
        report_service.render_pdf(report),
        mimetype=report_service.PDF_MIMETYPE,
        as_attachment=True,
        download_name=report.filename("pdf"),
    )


@sales_bp.get("/export/excel")
@require_auth
@require_permission("EXPORT_SALES")
def export_sales_excel_route():
    report = report_service.build_sales_report(request.args)
    return send_file(
        report_service.render_excel(report),
        mimetype=report_service.EXCEL_MIMETYPE,
        as_attachment=True,
        download_name=report.filename("xlsx"),
    )


@sales_bp.get("/<sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_route(sale_id):
    sale = sales_service.get_sale(parse_id(sale_id, "sale ID"))
    return jsonify({"message": "Sale retrieved", "sale": sale.to_dict()})


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALES")
def create_sale_route():
    """
    Create a sale.

    Request body:
    {
        "customer_id": 3,              // optional, defaults to the walk-in customer
        "sales_date": "2025-03-01",    // optional, defaults to today
        "status": "processing",        // optional: pending | processing
        "lines": [                     // required, non-empty
            {"product_id": 1, "quantity": 2}
        ]
    }

    Unit prices are taken from the products. A processing sale takes the
    stock immediately; a pending one only checks that it is there.
    """
    sale = sales_service.create_sale(request.get_json(silent=True) or {})
    return jsonify({"message": "Sale created", "sale": sale.to_dict()}), 201


@sales_bp.put("/<sale_id>")
@require_auth
@require_permission("UPDATE_SALES")
def update_sale_route(sale_id):
    sale = sales_service.update_sale(parse_id(sale_id, "sale ID"), request.get_json(silent=True) or {})
    return jsonify({"message": "Sale updated", "sale": sale.to_dict()})


@sales_bp.patch("/<sale_id>/status")
@require_auth
@require_permission("UPDATE_STATUS_SALES")
def update_sale_status_route(sale_id):
    data = request.get_json(silent=True) or {}
    sale = sales_service.change_sale_status(parse_id(sale_id, "sale ID"), data.get("status"))
    return jsonify({"message": f"Sale is now {sale.status}", "sale": sale.to_dict()})


@sales_bp.delete("/<sale_id>")
@require_auth
@require_permission("DELETE_SALES")
def delete_sale_route(sale_id):
    sales_service.delete_sale(parse_id(sale_id, "sale ID"))
    return jsonify({"message": "Sale deleted"})
