from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .time_utils import parse_iso_date


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DIGITS_RE = re.compile(r"^\d+$")

# Maximum price: 9,999,999,999.99
MAX_PRICE = Decimal("9999999999.99")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - digit_fields / email_fields: string fields with a fixed format
    - positive_fields: numeric fields that must be > 0
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    digit_fields: set[str] = field(default_factory=set)
    email_fields: set[str] = field(default_factory=set)
    positive_fields: set[str] = field(default_factory=set)


def _is_plain_digits(value: str) -> bool:
    # str.isdigit() also accepts superscripts and other digits int() rejects
    return value.isascii() and value.isdigit()


def parse_id(raw: Any, label: str = "ID") -> int:
    """Route ids and foreign-key references must be positive integers."""
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid {label}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _is_plain_digits(raw.strip()):
        value = int(raw.strip())
    else:
        raise ValidationError(f"Invalid {label}")
    if value <= 0:
        raise ValidationError(f"Invalid {label}")
    return value


def parse_positive_int(raw: Any, label: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        if isinstance(raw, str) and _is_plain_digits(raw.strip()):
            raw = int(raw.strip())
        else:
            raise ValidationError(f"{label} must be a positive integer")
    if raw <= 0:
        raise ValidationError(f"{label} must be a positive integer")
    return raw


def parse_positive_amount(raw: Any, label: str) -> Decimal:
    if isinstance(raw, bool) or raw is None:
        raise ValidationError(f"{label} must be a positive number")
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValidationError(f"{label} must be a positive number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{label} must be a positive number")
    if amount > MAX_PRICE:
        raise ValidationError(f"{label} cannot exceed {MAX_PRICE}")
    return amount.quantize(Decimal("0.01"))


def parse_date_param(raw: str | None, label: str) -> date | None:
    if raw is not None and not isinstance(raw, str):
        raise ValidationError(f"{label} must be a date in YYYY-MM-DD format")
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{label} must be a date in YYYY-MM-DD format")


def parse_status(raw: Any, allowed) -> str:
    """Normalize a status value and check it against an allowed set."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("status is required")
    status = raw.strip().lower()
    if status not in allowed:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(sorted(allowed))}"
        )
    return status


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if _is_plain_digits(stripped.removeprefix("-")):
                return int(stripped)
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{col.key} must be a number")
        if not amount.is_finite():
            raise ValidationError(f"{col.key} must be a number")
        # Round to the column scale so range checks see the stored value
        if coltype.scale is not None:
            try:
                amount = amount.quantize(Decimal(1).scaleb(-coltype.scale))
            except InvalidOperation:
                raise ValidationError(f"{col.key} is out of range")
        return amount

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                parsed = parse_iso_date(value)
            except ValueError:
                parsed = None
            if parsed is not None:
                return parsed
        raise ValidationError(f"{col.key} must be a date in YYYY-MM-DD format")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Every problem found is collected; a single ValidationError carrying the
    whole list is raised at the end.

    partial=False: create semantics (enforce required_on_create)
    partial=True: update semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[str] = []

    if not partial:
        for name in sorted(policy.required_on_create):
            value = payload.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{name} is required")

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            errors.append(f"Field not allowed: {k}")
            continue
        col = cols[k]

        if raw is None:
            if not col.nullable:
                if partial or k not in policy.required_on_create:
                    errors.append(f"{k} cannot be null")
                continue
            patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValidationError as exc:
            errors.append(exc.message)
            continue

        if isinstance(col.type, (String, Text)) and isinstance(val, str):
            if val == "":
                if not col.nullable and (partial or k not in policy.required_on_create):
                    errors.append(f"{k} cannot be blank")
                if not col.nullable:
                    continue
                val = None
            elif isinstance(col.type, String) and col.type.length and len(val) > col.type.length:
                errors.append(f"{k} exceeds max length {col.type.length}")
                continue

        if val is not None:
            if k in policy.digit_fields and not DIGITS_RE.match(val):
                errors.append(f"{k} must contain only digits")
                continue
            if k in policy.email_fields:
                val = val.lower()
                if not EMAIL_RE.match(val):
                    errors.append(f"{k} must be a valid email address")
                    continue
            if k in policy.positive_fields and val <= 0:
                errors.append(f"{k} must be greater than zero")
                continue

        patch[k] = val

    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return patch
