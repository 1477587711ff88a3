# Overview: Service-layer operations for roles and their permission sets.

"""
Roles.

- Role names are stored lower-cased and are unique.
- The admin role is locked: it cannot be edited or deactivated (403).
- Default roles cannot be deleted or renamed.
- A role still assigned to users cannot be deleted.
"""

from flask import current_app

from ..errors import BusinessRuleError, PermissionDenied, ValidationError
from ..extensions import db
from ..models import Role, User
from ..permissions import ADMIN_ROLE, validate_permission_code
from ..validation import ModelValidationPolicy, parse_status, validate_payload
from .code_service import next_code
from .common import RECORD_STATUSES, ensure_deletable, ensure_unique, get_or_404
from .permission_service import set_role_permissions


CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "status"},
    required_on_create={"name"},
)
UPDATE_POLICY = ModelValidationPolicy(writable_fields={"name", "description"})


def _parse_permission_codes(raw) -> list[str]:
    if not isinstance(raw, list) or not all(isinstance(code, str) for code in raw):
        raise ValidationError("permissions must be a list of permission codes")
    codes = [code.strip().upper() for code in raw]
    unknown = sorted({code for code in codes if not validate_permission_code(code)})
    if unknown:
        raise ValidationError(
            "Unknown permission codes",
            errors=[f"Unknown permission: {code}" for code in unknown],
        )
    return sorted(set(codes))


def _split_payload(payload) -> tuple[dict, list[str] | None]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(payload)
    codes = None
    if "permissions" in fields:
        codes = _parse_permission_codes(fields.pop("permissions"))
    if isinstance(fields.get("name"), str):
        fields["name"] = fields["name"].strip().lower()
    return fields, codes


def _ensure_not_admin(role: Role, action: str) -> None:
    if role.name == ADMIN_ROLE:
        raise PermissionDenied(f"The admin role cannot be {action}")


def list_roles(*, status: str | None = None) -> list[Role]:
    query = db.session.query(Role)
    if status:
        query = query.filter(Role.status == parse_status(status, RECORD_STATUSES))
    return query.order_by(Role.name).all()


def get_role(role_id: int) -> Role:
    return get_or_404(Role, role_id, "Role")


def create_role(payload: dict) -> Role:
    fields, codes = _split_payload(payload)
    patch = validate_payload(model=Role, payload=fields, policy=CREATE_POLICY, partial=False)
    if "status" in patch:
        patch["status"] = parse_status(patch["status"], RECORD_STATUSES)
    ensure_unique(Role, Role.name, patch["name"], message="Role name already exists")

    role = Role(code=next_code(Role), is_default=False, **patch)
    db.session.add(role)
    set_role_permissions(role, codes or [])
    db.session.commit()
    current_app.logger.info("Created role %s with %d permissions", role.name, len(codes or []))
    return role


def update_role(role_id: int, payload: dict) -> Role:
    role = get_role(role_id)
    _ensure_not_admin(role, "modified")

    fields, codes = _split_payload(payload)
    patch = validate_payload(model=Role, payload=fields, policy=UPDATE_POLICY, partial=True)
    if "name" in patch and patch["name"] != role.name:
        if role.is_default:
            raise BusinessRuleError("Default roles cannot be renamed")
        ensure_unique(Role, Role.name, patch["name"], message="Role name already exists", exclude_id=role.id)

    for key, value in patch.items():
        setattr(role, key, value)
    if codes is not None:
        set_role_permissions(role, codes)
    db.session.commit()
    return role


def set_role_status(role_id: int, status) -> Role:
    role = get_role(role_id)
    _ensure_not_admin(role, "deactivated")
    role.status = parse_status(status, RECORD_STATUSES)
    db.session.commit()
    return role


def delete_role(role_id: int) -> None:
    role = get_role(role_id)
    if role.is_default:
        raise BusinessRuleError("Default roles cannot be deleted")
    ensure_deletable(
        role,
        "role",
        references=[(db.session.query(User.id).filter_by(role_id=role.id), "users")],
    )
    db.session.delete(role)
    db.session.commit()
