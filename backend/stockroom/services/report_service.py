# Overview: Purchase and sales reports rendered as PDF (reportlab) or Excel (openpyxl).

"""
Report exports.

A report is built in two steps: query the documents matching the filters
into a plain Report (title, columns, one row per line item, summary), then
render it. Rendering is pure presentation and works on any Report.

Filters (all optional, from the query string):
- start_date / end_date: YYYY-MM-DD, inclusive, start <= end
- provider_id (purchases) or customer_id (sales)
- product_id: only line items of that product
- status: document status
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from flask import current_app
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..errors import NotFoundError, ValidationError
from ..time_utils import today, utcnow
from ..validation import parse_date_param, parse_id
from . import purchase_service, sales_service
from .stock_service import PURCHASE_MACHINE, SALE_MACHINE, StockMachine


PDF_MIMETYPE = "application/pdf"
EXCEL_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_COLOR = "#1F4E79"


@dataclass
class ReportFilters:
    start_date: date | None = None
    end_date: date | None = None
    party_id: int | None = None
    product_id: int | None = None
    status: str | None = None

    def describe(self, party_label: str) -> list[str]:
        parts = []
        if self.start_date or self.end_date:
            start = self.start_date.isoformat() if self.start_date else "beginning"
            end = self.end_date.isoformat() if self.end_date else "today"
            parts.append(f"Period: {start} to {end}")
        if self.party_id is not None:
            parts.append(f"{party_label} ID: {self.party_id}")
        if self.product_id is not None:
            parts.append(f"Product ID: {self.product_id}")
        if self.status:
            parts.append(f"Status: {self.status}")
        return parts or ["All records"]


@dataclass
class Report:
    title: str
    filename_base: str
    columns: list[str]
    rows: list[list] = field(default_factory=list)
    summary: list[tuple[str, object]] = field(default_factory=list)
    filters: list[str] = field(default_factory=list)

    def filename(self, extension: str) -> str:
        return f"{self.filename_base}_{today().strftime('%Y%m%d')}.{extension}"


def parse_filters(args, *, party_key: str, machine: StockMachine) -> ReportFilters:
    """Read report filters from a query-string mapping; all problems are reported together."""
    errors = []
    filters = ReportFilters()

    for key in ("start_date", "end_date"):
        try:
            setattr(filters, key, parse_date_param(args.get(key), key))
        except ValidationError as exc:
            errors.append(exc.message)

    for key, attr, label in ((party_key, "party_id", party_key.replace("_id", " ID")), ("product_id", "product_id", "product ID")):
        raw = args.get(key)
        if raw:
            try:
                setattr(filters, attr, parse_id(raw, label))
            except ValidationError as exc:
                errors.append(exc.message)

    if args.get("status"):
        try:
            filters.status = machine.check_status(args.get("status"))
        except ValidationError as exc:
            errors.append(exc.message)

    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        errors.append("start_date cannot be after end_date")

    if errors:
        raise ValidationError("Invalid report filters", errors=errors)
    return filters


def _summarize(documents: set, rows: list[list], amount_index: int, quantity_index: int) -> list[tuple[str, object]]:
    total = sum((Decimal(str(row[amount_index])) for row in rows), Decimal("0"))
    units = sum(row[quantity_index] for row in rows)
    return [
        ("Documents", len(documents)),
        ("Line items", len(rows)),
        ("Units", units),
        ("Total amount", float(total)),
    ]


def purchase_report(filters: ReportFilters) -> Report:
    purchases = purchase_service.list_purchases(
        status=filters.status,
        provider_id=filters.party_id,
        start_date=filters.start_date,
        end_date=filters.end_date,
    )

    rows, documents = [], set()
    for purchase in reversed(purchases):
        for line in purchase.lines:
            if filters.product_id is not None and line.product_id != filters.product_id:
                continue
            documents.add(purchase.id)
            rows.append([
                purchase.code,
                purchase.purchase_date.isoformat(),
                purchase.provider.company,
                line.product.name,
                line.quantity,
                float(line.unit_price),
                float(line.line_total),
                purchase.status,
            ])

    if not rows:
        raise NotFoundError("No purchases found for the selected filters")

    return Report(
        title="Purchases Report",
        filename_base="purchases_report",
        columns=["Code", "Date", "Provider", "Product", "Quantity", "Unit price", "Line total", "Status"],
        rows=rows,
        summary=_summarize(documents, rows, amount_index=6, quantity_index=4),
        filters=filters.describe("Provider"),
    )


def sales_report(filters: ReportFilters) -> Report:
    sales = sales_service.list_sales(
        status=filters.status,
        customer_id=filters.party_id,
        start_date=filters.start_date,
        end_date=filters.end_date,
    )

    rows, documents = [], set()
    for sale in reversed(sales):
        customer = f"{sale.customer.name} {sale.customer.lastname}"
        for line in sale.lines:
            if filters.product_id is not None and line.product_id != filters.product_id:
                continue
            documents.add(sale.id)
            rows.append([
                sale.code,
                sale.sales_date.isoformat(),
                customer,
                line.product.name,
                line.quantity,
                float(line.unit_price),
                float(line.line_total),
                sale.status,
            ])

    if not rows:
        raise NotFoundError("No sales found for the selected filters")

    return Report(
        title="Sales Report",
        filename_base="sales_report",
        columns=["Code", "Date", "Customer", "Product", "Quantity", "Unit price", "Line total", "Status"],
        rows=rows,
        summary=_summarize(documents, rows, amount_index=6, quantity_index=4),
        filters=filters.describe("Customer"),
    )


def _format_cell(value) -> str:
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def render_pdf(report: Report) -> io.BytesIO:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=report.title,
    )
    styles = getSampleStyleSheet()
    elements = [
        Paragraph(current_app.config["COMPANY_NAME"], styles["Title"]),
        Paragraph(report.title, styles["Heading2"]),
        Paragraph(f"Generated {utcnow().strftime('%Y-%m-%d %H:%M')} UTC", styles["Normal"]),
    ]
    for line in report.filters:
        elements.append(Paragraph(line, styles["Normal"]))
    elements.append(Spacer(1, 0.2 * inch))

    data = [report.columns] + [[_format_cell(v) for v in row] for row in report.rows]
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(HEADER_COLOR)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (4, 1), (6, -1), "RIGHT"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F2F2F2")]),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 0.3 * inch))

    summary = Table([[label, _format_cell(value)] for label, value in report.summary], hAlign="LEFT")
    summary.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.black),
    ]))
    elements.append(summary)

    doc.build(elements)
    buffer.seek(0)
    return buffer


def render_excel(report: Report) -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = report.title[:31]

    ws["A1"] = current_app.config["COMPANY_NAME"]
    ws["A1"].font = Font(bold=True, size=14)
    ws["A2"] = report.title
    ws["A2"].font = Font(bold=True, size=12)
    ws["A3"] = "; ".join(report.filters)

    header_row = 5
    header_fill = PatternFill("solid", fgColor=HEADER_COLOR.lstrip("#"))
    for col, title in enumerate(report.columns, start=1):
        cell = ws.cell(row=header_row, column=col, value=title)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for offset, row in enumerate(report.rows, start=1):
        for col, value in enumerate(row, start=1):
            cell = ws.cell(row=header_row + offset, column=col, value=value)
            if isinstance(value, float):
                cell.number_format = "#,##0.00"

    summary_row = header_row + len(report.rows) + 2
    for offset, (label, value) in enumerate(report.summary):
        ws.cell(row=summary_row + offset, column=1, value=label).font = Font(bold=True)
        cell = ws.cell(row=summary_row + offset, column=2, value=value)
        if isinstance(value, float):
            cell.number_format = "#,##0.00"

    for col, title in enumerate(report.columns, start=1):
        width = max([len(str(title))] + [len(_format_cell(row[col - 1])) for row in report.rows])
        ws.column_dimensions[get_column_letter(col)].width = min(width + 2, 40)
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def build_purchase_report(args) -> Report:
    return purchase_report(parse_filters(args, party_key="provider_id", machine=PURCHASE_MACHINE))


def build_sales_report(args) -> Report:
    return sales_report(parse_filters(args, party_key="customer_id", machine=SALE_MACHINE))
