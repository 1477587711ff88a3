# Overview: Service-layer operations for customers, including the protected default customer.

"""
Customers.

One customer is the walk-in default used when a sale names no customer.
It is created on first use and is read-only afterwards: it cannot be
edited, deleted or deactivated.
"""

from flask import current_app

from ..errors import BusinessRuleError
from ..extensions import db
from ..models import DEFAULT_CUSTOMER, Customer, Sale
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, parse_status, validate_payload
from .code_service import next_code
from .common import RECORD_STATUSES, apply_patch, ensure_deletable, ensure_unique, get_or_404


CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "lastname", "phone", "email", "status", "is_default"},
    required_on_create={"name", "lastname", "phone", "email"},
    digit_fields={"phone"},
    email_fields={"email"},
)
UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "lastname", "phone", "email"},
    digit_fields={"phone"},
    email_fields={"email"},
)


def get_default_customer() -> Customer:
    """Return the default customer, creating it the first time it is needed."""
    customer = db.session.query(Customer).filter_by(is_default=True).first()
    if customer:
        return customer

    customer = db.session.query(Customer).filter_by(email=DEFAULT_CUSTOMER["email"]).first()
    if customer:
        customer.is_default = True
        customer.status = "active"
    else:
        customer = Customer(code=next_code(Customer), is_default=True, status="active", **DEFAULT_CUSTOMER)
        db.session.add(customer)
    db.session.commit()
    current_app.logger.info("Provisioned default customer %s", customer.code)
    return customer


def list_customers(*, status: str | None = None, search: str | None = None) -> list[Customer]:
    get_default_customer()
    query = db.session.query(Customer)
    if status:
        query = query.filter(Customer.status == parse_status(status, RECORD_STATUSES))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Customer.name.ilike(term),
            Customer.lastname.ilike(term),
            Customer.email.ilike(term),
        ))
    return query.order_by(Customer.is_default.desc(), Customer.name, Customer.lastname).all()


def get_customer(customer_id: int) -> Customer:
    return get_or_404(Customer, customer_id, "Customer")


def _ensure_not_default(customer: Customer, action: str) -> None:
    if customer.is_default:
        raise BusinessRuleError(f"The default customer cannot be {action}")


def create_customer(payload: dict) -> Customer:
    patch = validate_payload(model=Customer, payload=payload, policy=CREATE_POLICY, partial=False)
    if "status" in patch:
        patch["status"] = parse_status(patch["status"], RECORD_STATUSES)
    if patch.get("is_default") and patch.get("status", "active") != "active":
        raise BusinessRuleError("The default customer must be active")
    ensure_unique(Customer, Customer.email, patch["email"], message="Email is already registered")

    customer = Customer(code=next_code(Customer), **patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(customer_id: int, payload: dict) -> Customer:
    customer = get_customer(customer_id)
    _ensure_not_default(customer, "edited")

    patch = validate_payload(model=Customer, payload=payload, policy=UPDATE_POLICY, partial=True)
    if "email" in patch:
        ensure_unique(
            Customer, Customer.email, patch["email"],
            message="Email is already registered", exclude_id=customer.id,
        )

    apply_patch(customer, patch)
    customer.updated_at = utcnow()
    db.session.commit()
    return customer


def set_customer_status(customer_id: int, status) -> Customer:
    customer = get_customer(customer_id)
    status = parse_status(status, RECORD_STATUSES)
    if status == "inactive":
        _ensure_not_default(customer, "deactivated")

    customer.status = status
    customer.updated_at = utcnow()
    db.session.commit()
    return customer


def delete_customer(customer_id: int) -> None:
    customer = get_customer(customer_id)
    _ensure_not_default(customer, "deleted")
    ensure_deletable(
        customer,
        "customer",
        references=[(db.session.query(Sale.id).filter_by(customer_id=customer.id), "sales")],
    )
    db.session.delete(customer)
    db.session.commit()


def validate_for_sale(customer_id: int) -> Customer:
    """Raise unless the customer may be put on a new sale."""
    customer = get_customer(customer_id)
    if customer.status != "active":
        raise BusinessRuleError(f"Customer '{customer.name} {customer.lastname}' is inactive")
    return customer
