# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Sales.

Status flow: pending -> processing -> completed, and cancelled from any of
those (cancelled is terminal). Stock leaves when a sale enters processing
(or is created as processing) and comes back when a processing or
completed sale is cancelled.

Rules checked on create and when lines are replaced:
- the customer exists and is active (no customer means the default one)
- every product exists, is active and is not expired
- stock covers the requested quantity, summed per product, even for a
  pending sale that does not take the stock yet

Sales can be edited until they are completed or cancelled; their lines only
while pending. Only pending or cancelled sales can be deleted.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..errors import BusinessRuleError, ValidationError
from ..extensions import db
from ..models import Customer, Sale, SaleLine
from ..time_utils import today, utcnow
from ..validation import parse_date_param, parse_id
from .code_service import next_code
from .common import get_or_404, parse_line_items
from .concurrency import run_in_transaction
from .customer_service import get_default_customer
from .stock_service import (
    SALE_MACHINE,
    apply_stock_effect,
    lock_products,
    net_quantities,
    plan_stock_changes,
    transition,
)


CREATE_STATUSES = ("pending", "processing")
EDITABLE_STATUSES = ("pending", "processing")


def list_sales(
    *,
    status: str | None = None,
    customer_id: int | None = None,
    start_date=None,
    end_date=None,
) -> list[Sale]:
    query = db.session.query(Sale)
    if status:
        query = query.filter(Sale.status == SALE_MACHINE.check_status(status))
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)
    if start_date:
        query = query.filter(Sale.sales_date >= start_date)
    if end_date:
        query = query.filter(Sale.sales_date <= end_date)
    return query.order_by(Sale.sales_date.desc(), Sale.id.desc()).all()


def get_sale(sale_id: int) -> Sale:
    return get_or_404(Sale, sale_id, "Sale")


def _active_customer(customer_id: int | None) -> Customer:
    if customer_id is None:
        return get_default_customer()
    customer = get_or_404(Customer, customer_id, "Customer")
    if customer.status != "active":
        raise BusinessRuleError(f"Customer '{customer.name} {customer.lastname}' is inactive")
    return customer


def _build_lines(sale: Sale, lines: list[dict]) -> None:
    """
    Validate products and stock for `lines` and attach them to the sale.

    Prices come from the product at this moment. Nothing is written to
    product stock here.
    """
    quantities = net_quantities((line["product_id"], line["quantity"]) for line in lines)
    products = lock_products(quantities)

    on = today()
    for product in products.values():
        if product.status != "active":
            raise BusinessRuleError(f"Product '{product.name}' is inactive")
        if product.expiration_date <= on:
            raise BusinessRuleError(f"Product '{product.name}' is expired")

    plan_stock_changes(
        {pid: p.stock for pid, p in products.items()},
        quantities,
        -1,
        names={pid: p.name for pid, p in products.items()},
    )

    total = Decimal("0")
    for position, line in enumerate(lines):
        product = products[line["product_id"]]
        line_total = product.price * line["quantity"]
        total += line_total
        sale.lines.append(SaleLine(
            position=position,
            product_id=product.id,
            quantity=line["quantity"],
            unit_price=product.price,
            line_total=line_total,
        ))
    sale.total = total


def _sale_quantities(sale: Sale) -> dict[int, int]:
    return net_quantities((line.product_id, line.quantity) for line in sale.lines)


def _parse_customer_id(payload: dict, errors: list[str]) -> int | None:
    raw = payload.get("customer_id")
    if raw is None or raw == "":
        return None
    try:
        return parse_id(raw, "customer ID")
    except ValidationError as exc:
        errors.append(exc.message)
        return None


def create_sale(payload: dict) -> Sale:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[str] = []
    customer_id = _parse_customer_id(payload, errors)
    try:
        sales_date = parse_date_param(payload.get("sales_date"), "sales_date") or today()
    except ValidationError as exc:
        errors.append(exc.message)
    status = payload.get("status", "processing")
    if not isinstance(status, str) or status.strip().lower() not in CREATE_STATUSES:
        errors.append(f"A new sale must be one of: {', '.join(CREATE_STATUSES)}")
    else:
        status = status.strip().lower()
    try:
        lines = parse_line_items(payload.get("lines"), with_price=False)
    except ValidationError as exc:
        errors.extend(exc.errors or [exc.message])
    if errors:
        raise ValidationError("Validation failed", errors=errors)

    def _create() -> Sale:
        customer = _active_customer(customer_id)
        sale = Sale(
            code=next_code(Sale),
            customer_id=customer.id,
            sales_date=sales_date,
            status=status,
        )
        _build_lines(sale, lines)
        db.session.add(sale)
        apply_stock_effect(_sale_quantities(sale), SALE_MACHINE.initial_sign(status))
        return sale

    sale = run_in_transaction(_create, retry_integrity=True)
    current_app.logger.info(
        "Created sale %s (%s) with %d lines, total %s",
        sale.code, sale.status, len(sale.lines), sale.total,
    )
    return sale


def _change_status(sale: Sale, target: str) -> None:
    transition(SALE_MACHINE, sale.status, target, _sale_quantities(sale))
    now = utcnow()
    sale.status = target
    sale.updated_at = now
    if target == "completed":
        sale.completed_at = now
    elif target == "cancelled":
        sale.cancelled_at = now


def change_sale_status(sale_id: int, status) -> Sale:
    target = SALE_MACHINE.check_status(status)

    def _op() -> Sale:
        sale = get_sale(sale_id)
        _change_status(sale, target)
        return sale

    sale = run_in_transaction(_op)
    current_app.logger.info("Sale %s is now %s", sale.code, sale.status)
    return sale


def update_sale(sale_id: int, payload: dict) -> Sale:
    """
    Edit a pending or processing sale.

    customer_id and sales_date may change; lines may be replaced only while
    the sale is pending; a status value goes through the normal transition
    rules after the other fields are applied.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"customer_id", "sales_date", "lines", "status"}
    errors = [f"Field not allowed: {key}" for key in payload if key not in allowed]

    customer_id = _parse_customer_id(payload, errors) if "customer_id" in payload else None
    sales_date = target = lines = None
    if "sales_date" in payload:
        try:
            sales_date = parse_date_param(payload["sales_date"], "sales_date")
            if sales_date is None:
                errors.append("sales_date cannot be blank")
        except ValidationError as exc:
            errors.append(exc.message)
    if "lines" in payload:
        try:
            lines = parse_line_items(payload["lines"], with_price=False)
        except ValidationError as exc:
            errors.extend(exc.errors or [exc.message])
    if "status" in payload:
        try:
            target = SALE_MACHINE.check_status(payload["status"])
        except ValidationError as exc:
            errors.append(exc.message)
    if errors:
        raise ValidationError("Validation failed", errors=errors)

    def _op() -> Sale:
        sale = get_sale(sale_id)
        if sale.status not in EDITABLE_STATUSES:
            raise BusinessRuleError(f"A {sale.status} sale cannot be modified")

        if "customer_id" in payload:
            sale.customer_id = _active_customer(customer_id).id
        if sales_date is not None:
            sale.sales_date = sales_date
        if lines is not None:
            if sale.status != "pending":
                raise BusinessRuleError("Sale lines can only be changed while the sale is pending")
            sale.lines.clear()
            db.session.flush()
            _build_lines(sale, lines)
        if target is not None and target != sale.status:
            _change_status(sale, target)
        sale.updated_at = utcnow()
        return sale

    return run_in_transaction(_op)


def delete_sale(sale_id: int) -> None:
    sale = get_sale(sale_id)
    if not SALE_MACHINE.can_delete(sale.status):
        raise BusinessRuleError("Only pending or cancelled sales can be deleted")

    code = sale.code
    db.session.delete(sale)
    db.session.commit()
    current_app.logger.info("Deleted sale %s", code)
