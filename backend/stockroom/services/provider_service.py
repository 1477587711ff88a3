# Overview: Service-layer operations for providers (suppliers).

from ..extensions import db
from ..models import Provider, Purchase
from ..validation import ModelValidationPolicy, parse_status, validate_payload
from .code_service import next_code
from .common import RECORD_STATUSES, apply_patch, change_status, ensure_deletable, ensure_unique, get_or_404


CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"nit", "company", "name", "contact_phone", "email", "status"},
    required_on_create={"nit", "company", "name", "contact_phone", "email"},
    digit_fields={"nit", "contact_phone"},
    email_fields={"email"},
)
UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"nit", "company", "name", "contact_phone", "email"},
    digit_fields={"nit", "contact_phone"},
    email_fields={"email"},
)


def list_providers(*, status: str | None = None, search: str | None = None) -> list[Provider]:
    query = db.session.query(Provider)
    if status:
        query = query.filter(Provider.status == parse_status(status, RECORD_STATUSES))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Provider.company.ilike(term),
            Provider.name.ilike(term),
            Provider.nit.ilike(term),
        ))
    return query.order_by(Provider.company).all()


def get_provider(provider_id: int) -> Provider:
    return get_or_404(Provider, provider_id, "Provider")


def create_provider(payload: dict) -> Provider:
    patch = validate_payload(model=Provider, payload=payload, policy=CREATE_POLICY, partial=False)
    if "status" in patch:
        patch["status"] = parse_status(patch["status"], RECORD_STATUSES)
    ensure_unique(Provider, Provider.email, patch["email"], message="Email is already registered")

    provider = Provider(code=next_code(Provider), **patch)
    db.session.add(provider)
    db.session.commit()
    return provider


def update_provider(provider_id: int, payload: dict) -> Provider:
    provider = get_provider(provider_id)
    patch = validate_payload(model=Provider, payload=payload, policy=UPDATE_POLICY, partial=True)
    if "email" in patch:
        ensure_unique(
            Provider, Provider.email, patch["email"],
            message="Email is already registered", exclude_id=provider.id,
        )

    apply_patch(provider, patch)
    db.session.commit()
    return provider


def set_provider_status(provider_id: int, status) -> Provider:
    provider = get_provider(provider_id)
    change_status(provider, status)
    db.session.commit()
    return provider


def delete_provider(provider_id: int) -> None:
    provider = get_provider(provider_id)
    ensure_deletable(
        provider,
        "provider",
        references=[(db.session.query(Purchase.id).filter_by(provider_id=provider.id), "purchases")],
    )
    db.session.delete(provider)
    db.session.commit()
