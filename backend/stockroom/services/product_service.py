# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products.

Clients never write stock: it starts at 0 and only purchases and sales move
it (services/stock_service.py). Expiry is tracked by date; a product whose
expiration_date is today or earlier is expired and cannot be sold.
"""

from __future__ import annotations

from datetime import date, timedelta

from flask import current_app

from ..errors import BusinessRuleError, ValidationError
from ..extensions import db
from ..models import Category, Product, PurchaseLine, SaleLine
from ..time_utils import today, utcnow
from ..validation import MAX_PRICE, ModelValidationPolicy, parse_positive_int, parse_status, validate_payload
from .code_service import next_code
from .common import RECORD_STATUSES, apply_patch, change_status, ensure_deletable, ensure_unique, get_or_404


CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category_id", "price", "batch_date", "expiration_date", "status"},
    required_on_create={"name", "category_id", "price", "batch_date", "expiration_date"},
    positive_fields={"price", "category_id"},
)
UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category_id", "price", "batch_date", "expiration_date"},
    positive_fields={"price", "category_id"},
)


def is_expired(product: Product, on: date | None = None) -> bool:
    return product.expiration_date <= (on or today())


def expiration_alert(product: Product, days: int | None = None) -> str | None:
    """Human-readable warning when the product is expired or expires within `days`."""
    if days is None:
        days = current_app.config["EXPIRY_ALERT_DAYS"]
    remaining = (product.expiration_date - today()).days
    if remaining <= 0:
        return f"Product '{product.name}' expired on {product.expiration_date.isoformat()}"
    if remaining <= days:
        unit = "day" if remaining == 1 else "days"
        return f"Product '{product.name}' expires in {remaining} {unit}"
    return None


def list_products(
    *,
    status: str | None = None,
    category_id: int | None = None,
    search: str | None = None,
) -> list[Product]:
    query = db.session.query(Product)
    if status:
        query = query.filter(Product.status == parse_status(status, RECORD_STATUSES))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(db.or_(Product.name.ilike(term), Product.code.ilike(term)))
    return query.order_by(Product.name).all()


def list_expiring(days: int | None = None) -> dict[str, list[Product]]:
    """Active products already expired, and those expiring within `days`."""
    if days is None:
        days = current_app.config["EXPIRY_ALERT_DAYS"]
    if days < 0:
        raise ValidationError("days must be zero or greater")

    now = today()
    products = (
        db.session.query(Product)
        .filter(Product.status == "active", Product.expiration_date <= now + timedelta(days=days))
        .order_by(Product.expiration_date, Product.name)
        .all()
    )
    return {
        "expired": [p for p in products if p.expiration_date <= now],
        "expiring": [p for p in products if p.expiration_date > now],
    }


def get_product(product_id: int) -> Product:
    return get_or_404(Product, product_id, "Product")


def _check_category(category_id: int) -> None:
    category = get_or_404(Category, category_id, "Category")
    if category.status != "active":
        raise BusinessRuleError(f"Category '{category.name}' is inactive")


def _check_price_and_dates(price, batch_date, expiration_date) -> None:
    errors = []
    if price is not None and price > MAX_PRICE:
        errors.append(f"price cannot exceed {MAX_PRICE}")
    if batch_date and expiration_date and batch_date > expiration_date:
        errors.append("batch_date cannot be after expiration_date")
    if errors:
        raise ValidationError("Validation failed", errors=errors)


def create_product(payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=CREATE_POLICY, partial=False)
    if "status" in patch:
        patch["status"] = parse_status(patch["status"], RECORD_STATUSES)
    _check_price_and_dates(patch["price"], patch["batch_date"], patch["expiration_date"])
    _check_category(patch["category_id"])
    ensure_unique(Product, Product.name, patch["name"], message="Product name already exists")

    product = Product(code=next_code(Product), stock=0, **patch)
    db.session.add(product)
    db.session.commit()
    current_app.logger.info("Created product %s (%s)", product.code, product.name)
    return product


def update_product(product_id: int, payload: dict) -> Product:
    product = get_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=UPDATE_POLICY, partial=True)
    _check_price_and_dates(
        patch.get("price"),
        patch.get("batch_date", product.batch_date),
        patch.get("expiration_date", product.expiration_date),
    )
    if "category_id" in patch and patch["category_id"] != product.category_id:
        _check_category(patch["category_id"])
    if "name" in patch:
        ensure_unique(
            Product, Product.name, patch["name"],
            message="Product name already exists", exclude_id=product.id,
        )

    apply_patch(product, patch)
    product.updated_at = utcnow()
    db.session.commit()
    return product


def set_product_status(product_id: int, status) -> Product:
    product = get_product(product_id)
    change_status(product, status)
    product.updated_at = utcnow()
    db.session.commit()
    return product


def delete_product(product_id: int) -> None:
    product = get_product(product_id)
    ensure_deletable(
        product,
        "product",
        references=[
            (db.session.query(PurchaseLine.id).filter_by(product_id=product.id), "purchases"),
            (db.session.query(SaleLine.id).filter_by(product_id=product.id), "sales"),
        ],
    )
    db.session.delete(product)
    db.session.commit()


def check_availability(product_id: int, quantity) -> dict:
    """Whether `quantity` units of the product could be sold right now."""
    product = get_product(product_id)
    requested = parse_positive_int(quantity, "quantity")

    reasons = []
    if product.status != "active":
        reasons.append("Product is inactive")
    if is_expired(product):
        reasons.append("Product is expired")
    if product.stock < requested:
        reasons.append(f"Insufficient stock: available {product.stock}, requested {requested}")

    return {
        "product": product.to_summary(),
        "requested": requested,
        "stock": product.stock,
        "available": not reasons,
        "reasons": reasons,
    }
