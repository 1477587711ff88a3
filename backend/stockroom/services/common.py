# Overview: Lookup and validation helpers shared by the entity services.

from __future__ import annotations

from sqlalchemy import func

from ..errors import BusinessRuleError, NotFoundError, ValidationError
from ..extensions import db
from ..validation import parse_id, parse_positive_amount, parse_positive_int, parse_status


RECORD_STATUSES = ("active", "inactive")


def get_or_404(model, record_id: int, label: str):
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{label} not found")
    return record


def ensure_unique(model, column, value: str, *, message: str, exclude_id: int | None = None) -> None:
    """Case-insensitive uniqueness check on a string column."""
    query = db.session.query(model.id).filter(func.lower(column) == value.lower())
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise BusinessRuleError(message)


def apply_patch(record, patch: dict) -> None:
    for key, value in patch.items():
        setattr(record, key, value)


def change_status(record, status, allowed=RECORD_STATUSES) -> str:
    """Validate and set a plain (non stock-bearing) status field."""
    record.status = parse_status(status, allowed)
    return record.status


def ensure_deletable(record, label: str, *, references: list[tuple[object, str]] = ()) -> None:
    """
    Master data is deleted only when inactive and unreferenced.

    references: (query, description) pairs; any query returning a row blocks
    the delete.
    """
    if record.status != "inactive":
        raise BusinessRuleError(f"{label.capitalize()} must be inactive before it can be deleted")
    for query, description in references:
        if query.first() is not None:
            raise BusinessRuleError(f"Cannot delete {label}: it is referenced by {description}")


def parse_line_items(raw, *, with_price: bool) -> list[dict]:
    """
    Validate the "lines" array of a purchase or sale.

    Each item needs product_id and quantity (positive integers); purchases
    also need price (positive number). All problems are reported together,
    prefixed with the line index.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("At least one line item is required")

    errors: list[str] = []
    lines: list[dict] = []
    for index, item in enumerate(raw):
        prefix = f"lines[{index}]"
        if not isinstance(item, dict):
            errors.append(f"{prefix} must be an object")
            continue
        line = {}
        try:
            line["product_id"] = parse_id(item.get("product_id"), "product ID")
        except ValidationError as exc:
            errors.append(f"{prefix}: {exc.message}")
        try:
            line["quantity"] = parse_positive_int(item.get("quantity"), "quantity")
        except ValidationError as exc:
            errors.append(f"{prefix}: {exc.message}")
        if with_price:
            try:
                line["price"] = parse_positive_amount(item.get("price"), "price")
            except ValidationError as exc:
                errors.append(f"{prefix}: {exc.message}")
        lines.append(line)

    if errors:
        raise ValidationError("Invalid line items", errors=errors)
    return lines
