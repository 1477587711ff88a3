# Overview: Service-layer operations for purchases; encapsulates business logic and database work.

"""
Purchases.

An active purchase adds its quantities to product stock. Deactivating it
takes them back out (refused if any product no longer has that many units),
reactivating adds them again. Lines are fixed at creation; only inactive
purchases can be deleted.

Every stock-changing operation runs inside one transaction: the document,
its lines and all product stock levels are written together or not at all.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..errors import BusinessRuleError, ValidationError
from ..extensions import db
from ..models import Provider, Purchase, PurchaseLine
from ..time_utils import today, utcnow
from ..validation import parse_date_param, parse_id
from .code_service import next_code
from .common import get_or_404, parse_line_items
from .concurrency import run_in_transaction
from .stock_service import PURCHASE_MACHINE, apply_stock_effect, lock_products, net_quantities, transition


def list_purchases(
    *,
    status: str | None = None,
    provider_id: int | None = None,
    start_date=None,
    end_date=None,
) -> list[Purchase]:
    query = db.session.query(Purchase)
    if status:
        query = query.filter(Purchase.status == PURCHASE_MACHINE.check_status(status))
    if provider_id is not None:
        query = query.filter(Purchase.provider_id == provider_id)
    if start_date:
        query = query.filter(Purchase.purchase_date >= start_date)
    if end_date:
        query = query.filter(Purchase.purchase_date <= end_date)
    return query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()).all()


def get_purchase(purchase_id: int) -> Purchase:
    return get_or_404(Purchase, purchase_id, "Purchase")


def _active_provider(provider_id: int) -> Provider:
    provider = get_or_404(Provider, provider_id, "Provider")
    if provider.status != "active":
        raise BusinessRuleError(f"Provider '{provider.company}' is inactive")
    return provider


def _purchase_quantities(purchase: Purchase) -> dict[int, int]:
    return net_quantities((line.product_id, line.quantity) for line in purchase.lines)


def create_purchase(payload: dict) -> Purchase:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors = []
    provider_id = None
    try:
        provider_id = parse_id(payload.get("provider_id"), "provider ID")
    except ValidationError as exc:
        errors.append(exc.message)
    try:
        purchase_date = parse_date_param(payload.get("purchase_date"), "purchase_date") or today()
    except ValidationError as exc:
        errors.append(exc.message)
    status = payload.get("status", "active")
    try:
        status = PURCHASE_MACHINE.check_status(status)
    except ValidationError as exc:
        errors.append(exc.message)
    try:
        lines = parse_line_items(payload.get("lines"), with_price=True)
    except ValidationError as exc:
        errors.extend(exc.errors or [exc.message])
    if errors:
        raise ValidationError("Validation failed", errors=errors)

    def _create() -> Purchase:
        _active_provider(provider_id)
        products = lock_products(line["product_id"] for line in lines)
        for product in products.values():
            if product.status != "active":
                raise BusinessRuleError(f"Product '{product.name}' is inactive")

        purchase = Purchase(
            code=next_code(Purchase),
            provider_id=provider_id,
            purchase_date=purchase_date,
            status=status,
        )
        total = Decimal("0")
        for position, line in enumerate(lines):
            line_total = line["price"] * line["quantity"]
            total += line_total
            purchase.lines.append(PurchaseLine(
                position=position,
                product_id=line["product_id"],
                quantity=line["quantity"],
                unit_price=line["price"],
                line_total=line_total,
            ))
        purchase.total = total
        db.session.add(purchase)

        quantities = net_quantities((line["product_id"], line["quantity"]) for line in lines)
        apply_stock_effect(quantities, PURCHASE_MACHINE.initial_sign(status))
        return purchase

    purchase = run_in_transaction(_create, retry_integrity=True)
    current_app.logger.info(
        "Created purchase %s (%s) with %d lines, total %s",
        purchase.code, purchase.status, len(purchase.lines), purchase.total,
    )
    return purchase


def _change_status(purchase: Purchase, target: str) -> None:
    transition(PURCHASE_MACHINE, purchase.status, target, _purchase_quantities(purchase))
    purchase.status = target
    purchase.updated_at = utcnow()


def change_purchase_status(purchase_id: int, status) -> Purchase:
    target = PURCHASE_MACHINE.check_status(status)

    def _op() -> Purchase:
        purchase = get_purchase(purchase_id)
        _change_status(purchase, target)
        return purchase

    purchase = run_in_transaction(_op)
    current_app.logger.info("Purchase %s is now %s", purchase.code, purchase.status)
    return purchase


def update_purchase(purchase_id: int, payload: dict) -> Purchase:
    """Change provider, date and/or status. Lines cannot be edited."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"provider_id", "purchase_date", "status"}
    errors = []
    if "lines" in payload:
        errors.append("Purchase lines cannot be changed after creation")
    errors.extend(f"Field not allowed: {key}" for key in payload if key not in allowed and key != "lines")

    provider_id = purchase_date = target = None
    if "provider_id" in payload:
        try:
            provider_id = parse_id(payload["provider_id"], "provider ID")
        except ValidationError as exc:
            errors.append(exc.message)
    if "purchase_date" in payload:
        try:
            purchase_date = parse_date_param(payload["purchase_date"], "purchase_date")
            if purchase_date is None:
                errors.append("purchase_date cannot be blank")
        except ValidationError as exc:
            errors.append(exc.message)
    if "status" in payload:
        try:
            target = PURCHASE_MACHINE.check_status(payload["status"])
        except ValidationError as exc:
            errors.append(exc.message)
    if errors:
        raise ValidationError("Validation failed", errors=errors)

    def _op() -> Purchase:
        purchase = get_purchase(purchase_id)
        if provider_id is not None and provider_id != purchase.provider_id:
            _active_provider(provider_id)
            purchase.provider_id = provider_id
        if purchase_date is not None:
            purchase.purchase_date = purchase_date
        if target is not None and target != purchase.status:
            _change_status(purchase, target)
        purchase.updated_at = utcnow()
        return purchase

    return run_in_transaction(_op)


def delete_purchase(purchase_id: int) -> None:
    purchase = get_purchase(purchase_id)
    if not PURCHASE_MACHINE.can_delete(purchase.status):
        raise BusinessRuleError("Only inactive purchases can be deleted")

    code = purchase.code
    db.session.delete(purchase)
    db.session.commit()
    current_app.logger.info("Deleted purchase %s", code)
