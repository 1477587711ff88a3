# Overview: Service-layer operations for product categories.

from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, parse_status, validate_payload
from .code_service import next_code
from .common import RECORD_STATUSES, apply_patch, change_status, ensure_deletable, ensure_unique, get_or_404


CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "status"},
    required_on_create={"name"},
)
UPDATE_POLICY = ModelValidationPolicy(writable_fields={"name", "description"})


def list_categories(*, status: str | None = None, search: str | None = None) -> list[Category]:
    query = db.session.query(Category)
    if status:
        query = query.filter(Category.status == parse_status(status, RECORD_STATUSES))
    if search:
        query = query.filter(Category.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Category.name).all()


def get_category(category_id: int) -> Category:
    return get_or_404(Category, category_id, "Category")


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CREATE_POLICY, partial=False)
    if "status" in patch:
        patch["status"] = parse_status(patch["status"], RECORD_STATUSES)
    ensure_unique(Category, Category.name, patch["name"], message="Category name already exists")

    category = Category(code=next_code(Category), **patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = get_category(category_id)
    patch = validate_payload(model=Category, payload=payload, policy=UPDATE_POLICY, partial=True)
    if "name" in patch:
        ensure_unique(
            Category, Category.name, patch["name"],
            message="Category name already exists", exclude_id=category.id,
        )

    apply_patch(category, patch)
    db.session.commit()
    return category


def set_category_status(category_id: int, status) -> Category:
    category = get_category(category_id)
    change_status(category, status)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    category = get_category(category_id)
    ensure_deletable(
        category,
        "category",
        references=[(db.session.query(Product.id).filter_by(category_id=category.id), "products")],
    )
    db.session.delete(category)
    db.session.commit()
